"""
Tests for the token session store.
"""

from unittest.mock import MagicMock

from product_graph.auth import SessionManager, configure_session_manager, get_session_manager


class TestSessionManager:

    def test_headers_with_token(self):
        session = SessionManager(token="abc")
        assert session.is_authenticated
        assert session.auth_headers() == {"Authorization": "Bearer abc"}

    def test_headers_without_token(self):
        session = SessionManager()
        assert not session.is_authenticated
        assert session.auth_headers() == {}

    def test_empty_token_means_logged_out(self):
        session = SessionManager(token="")
        assert session.get_session_token() is None
        session.set_token("xyz")
        assert session.get_session_token() == "xyz"
        session.set_token("")
        assert not session.is_authenticated

    def test_expire_clears_and_notifies(self):
        session = SessionManager(token="abc")
        callback = MagicMock()
        session.on_expired(callback)
        session.expire()
        assert session.get_session_token() is None
        callback.assert_called_once_with()

        # already logged out: no second notification
        session.expire()
        callback.assert_called_once_with()

    def test_failing_callback_does_not_break_expiry(self):
        session = SessionManager(token="abc")
        session.on_expired(MagicMock(side_effect=RuntimeError("boom")))
        second = MagicMock()
        session.on_expired(second)
        session.expire()
        assert not session.is_authenticated
        second.assert_called_once_with()


def test_configure_session_manager():
    session = configure_session_manager("tok")
    assert get_session_manager() is session
    assert session.get_session_token() == "tok"
