"""
Session Gate

A single shared password protects the whole application. Success is
remembered in the Streamlit session state only, so it lasts for the
browser session and nothing is stored server-side.
"""

import hmac
from typing import MutableMapping, Optional, Union

from pydantic import SecretStr

from invoice_studio.logs import get_logger


logger = get_logger(__name__)


AUTH_STATE_KEY = "is_authenticated"
SYSTEM_INFO_STATE_KEY = "system_info_unlocked"

Secret = Union[SecretStr, str]


def _reveal(secret: Optional[Secret]) -> str:
    if secret is None:
        return ""
    if isinstance(secret, SecretStr):
        return secret.get_secret_value()
    return secret


def check_password(candidate: Optional[str], expected: Optional[Secret]) -> bool:
    """Constant-time comparison. An empty expected secret never matches."""
    expected_value = _reveal(expected)
    if not expected_value or candidate is None:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected_value.encode("utf-8"))


class SessionGate:
    """
    Login state for one browser session.

    Args:
        state: Session mapping (st.session_state in the app)
        app_password: Shared login password
        admin_password: Optional extra password for the system info screen
    """

    def __init__(
        self,
        state: MutableMapping,
        app_password: Secret,
        admin_password: Optional[Secret] = None,
    ):
        self._state = state
        self._app_password = app_password
        self._admin_password = admin_password

    @property
    def is_authenticated(self) -> bool:
        return bool(self._state.get(AUTH_STATE_KEY, False))

    @property
    def system_info_unlocked(self) -> bool:
        return bool(self._state.get(SYSTEM_INFO_STATE_KEY, False))

    def login(self, candidate: str) -> bool:
        ok = check_password(candidate, self._app_password)
        self._state[AUTH_STATE_KEY] = ok
        if not ok:
            logger.warning("login_rejected")
        return ok

    def logout(self) -> None:
        self._state[AUTH_STATE_KEY] = False
        self._state[SYSTEM_INFO_STATE_KEY] = False

    def unlock_system_info(self, candidate: str) -> bool:
        """Accepts the login password or the admin password."""
        ok = (
            check_password(candidate, self._app_password)
            or check_password(candidate, self._admin_password)
        )
        self._state[SYSTEM_INFO_STATE_KEY] = ok
        if not ok:
            logger.warning("system_info_unlock_rejected")
        return ok
