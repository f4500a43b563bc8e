import logging
import uuid
from typing import Optional
from passlib.hash import pbkdf2_sha256

from kitchen_console.domain.exceptions import InvalidCredentialsError, StaffExistsError
from kitchen_console.domain.models import Staff

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return pbkdf2_sha256.hash(password)


class AuthenticateStaffUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, username: str, password: str) -> Staff:
        async with self._uow() as uow:
            found = await uow.staff.get_by_username(username)

        if found is None:
            logger.info(f"Login refused for unknown user {username}")
            raise InvalidCredentialsError("Invalid username or password")

        staff, password_hash = found
        if not pbkdf2_sha256.verify(password, password_hash):
            logger.info(f"Login refused for {username}")
            raise InvalidCredentialsError("Invalid username or password")

        logger.info(f"Staff {username} logged in")
        return staff


class RegisterStaffUseCase:
    """Create a staff account with a hashed password."""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, username: str, password: str, display_name: Optional[str] = None) -> Staff:
        async with self._uow() as uow:
            if await uow.staff.get_by_username(username) is not None:
                raise StaffExistsError(f"Staff account {username} already exists")

            staff = Staff(id=str(uuid.uuid4()), username=username, display_name=display_name)
            await uow.staff.create(staff, hash_password(password))
            await uow.commit()

        logger.info(f"Staff account {username} created")
        return staff
