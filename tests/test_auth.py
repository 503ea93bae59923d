"""Tests for the session gate."""

from pydantic import SecretStr

from invoice_studio.auth import (
    AUTH_STATE_KEY,
    SessionGate,
    check_password,
)


class TestCheckPassword:
    """Tests for check_password."""

    def test_match(self):
        """Test the right password is accepted."""
        assert check_password("s3cret", SecretStr("s3cret"))

    def test_mismatch(self):
        """Test a wrong password is rejected."""
        assert not check_password("guess", SecretStr("s3cret"))

    def test_unset_secret_never_matches(self):
        """Test an empty or missing secret cannot be logged into."""
        assert not check_password("", SecretStr(""))
        assert not check_password("anything", None)

    def test_non_ascii(self):
        """Test non-ASCII passwords compare correctly."""
        assert check_password("κωδικός", "κωδικός")


class TestSessionGate:
    """Tests for SessionGate."""

    def test_login_sets_session_flag(self):
        """Test a successful login is remembered in the session."""
        state = {}
        gate = SessionGate(state, SecretStr("pw"))
        assert not gate.is_authenticated
        assert gate.login("pw")
        assert state[AUTH_STATE_KEY] is True
        assert gate.is_authenticated

    def test_failed_login(self):
        """Test a wrong password leaves the session locked."""
        gate = SessionGate({}, SecretStr("pw"))
        assert not gate.login("nope")
        assert not gate.is_authenticated

    def test_logout(self):
        """Test logging out clears both flags."""
        state = {}
        gate = SessionGate(state, SecretStr("pw"))
        gate.login("pw")
        gate.unlock_system_info("pw")
        gate.logout()
        assert not gate.is_authenticated
        assert not gate.system_info_unlocked

    def test_system_info_accepts_admin_password(self):
        """Test the system info screen opens with either password."""
        gate = SessionGate({}, SecretStr("pw"), SecretStr("root"))
        assert gate.unlock_system_info("root")
        assert SessionGate({}, SecretStr("pw"), SecretStr("root")).unlock_system_info("pw")
        assert not SessionGate({}, SecretStr("pw")).unlock_system_info("root")
