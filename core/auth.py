"""
Login gate for the viewer.

A static credential check with a session flag that lives as long as the
process. The viewer core never inspects credentials; it only reacts to the
established/ended signals.
"""

from typing import Callable, Dict, List

from utils.logger import get_logger

logger = get_logger(__name__)


def check_credentials(username: str, password: str, credentials: Dict[str, str]) -> bool:
    return username == credentials['username'] and password == credentials['password']


class AuthSession:
    """Holds the authenticated flag and notifies listeners when it changes."""

    def __init__(self, credentials: Dict[str, str]):
        self._credentials = credentials
        self.authenticated = False
        self._on_established: List[Callable[[], None]] = []
        self._on_ended: List[Callable[[], None]] = []

    def on_established(self, callback: Callable[[], None]) -> None:
        self._on_established.append(callback)

    def on_ended(self, callback: Callable[[], None]) -> None:
        self._on_ended.append(callback)

    def login(self, username: str, password: str) -> bool:
        if not check_credentials(username, password, self._credentials):
            logger.warning(f"Rejected login for user '{username}'")
            return False

        if self.authenticated:
            return True

        self.authenticated = True
        logger.info(f"Session established for '{username}'")
        for callback in list(self._on_established):
            callback()
        return True

    def logout(self) -> None:
        if not self.authenticated:
            return

        self.authenticated = False
        logger.info("Session ended")
        for callback in list(self._on_ended):
            callback()
