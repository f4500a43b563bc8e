from typing import Optional


class DomainException(Exception):
    pass


class TransitionError(DomainException):
    def __init__(self, order_id: Optional[str], message: str):
        self.order_id = order_id
        super().__init__(message)


class InvalidStateError(TransitionError):
    """The order is unknown or no longer pending; nothing was persisted."""


class PersistenceFailureError(TransitionError):
    """The status write or the read behind a refresh failed.

    order_id is None when the whole order list could not be read.
    """

    @classmethod
    def on_read(cls, message: str) -> "PersistenceFailureError":
        return cls(None, message)


class NotificationDispatchError(DomainException):
    pass


class FeedConnectionError(DomainException):
    pass


class ProjectionDataError(DomainException):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Unparseable order_date: {value!r}")


class InvalidCredentialsError(DomainException):
    pass


class StaffExistsError(DomainException):
    pass
