import logging
import secrets
from typing import Callable, Dict, Iterator, Optional

from kitchen_console.application.session import KitchenSession
from kitchen_console.domain.models import Staff

logger = logging.getLogger(__name__)


class KitchenSessions:
    """Open kitchen sessions keyed by access token.

    Every successful login opens a fresh session with its own store, feed
    and alerts; logging out closes it.
    """

    def __init__(self, session_factory: Callable[[Staff], KitchenSession]):
        self._session_factory = session_factory
        self._sessions: Dict[str, KitchenSession] = {}

    async def open(self, staff: Staff) -> str:
        kitchen = self._session_factory(staff)
        await kitchen.open()
        token = secrets.token_urlsafe(32)
        self._sessions[token] = kitchen
        logger.info(f"Kitchen session opened for {staff.username}")
        return token

    def get(self, token: str) -> Optional[KitchenSession]:
        return self._sessions.get(token)

    async def close(self, token: str) -> bool:
        kitchen = self._sessions.pop(token, None)
        if kitchen is None:
            return False
        await kitchen.close()
        return True

    async def close_all(self) -> None:
        sessions, self._sessions = list(self._sessions.values()), {}
        for kitchen in sessions:
            try:
                await kitchen.close()
            except Exception as e:
                logger.error(f"Error closing kitchen session: {e}", exc_info=True)

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[KitchenSession]:
        return iter(list(self._sessions.values()))
