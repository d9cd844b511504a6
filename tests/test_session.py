"""
Session persistence and the protected-view guard.
"""

import pytest

from civicpulse.errors import RedirectRequired
from civicpulse.session import SessionStore


class TestSessionStore:
    def test_round_trip(self, sessions, citizen_session):
        assert sessions.load() is None
        sessions.save(citizen_session)
        loaded = sessions.load()
        assert loaded.token == "token-1"
        assert loaded.user.name == "Ravi Kumar"

    def test_clear(self, sessions, citizen_session):
        sessions.save(citizen_session)
        sessions.clear()
        assert sessions.load() is None
        sessions.clear()

    def test_corrupt_file_is_logged_out(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        assert SessionStore(path).load() is None

    def test_creates_parent_directory(self, tmp_path, citizen_session):
        store = SessionStore(tmp_path / "nested" / "dir" / "session.json")
        store.save(citizen_session)
        assert store.path.is_file()


class TestRequire:
    def test_missing_session_redirects_to_login(self, sessions):
        with pytest.raises(RedirectRequired) as exc:
            sessions.require()
        assert exc.value.target == "login"

    def test_wrong_role(self, sessions, citizen_session):
        sessions.save(citizen_session)
        with pytest.raises(RedirectRequired, match="officers only"):
            sessions.require("officer")

    def test_matching_role(self, sessions, admin_session):
        sessions.save(admin_session)
        assert sessions.require("admin").user.id == 99
