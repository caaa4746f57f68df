"""
Tests for session management.
"""

import threading

import pytest

from linux_sim.config import Settings
from linux_sim.services.session import SessionNotFoundError, SessionService


@pytest.fixture
def session_service():
    """Create a session service instance"""
    return SessionService(max_sessions=3)


class TestSessionLifecycle:
    """Tests for creating, resetting and removing sessions"""

    def test_get_or_create_reuses(self, session_service):
        first = session_service.get_or_create("s1")
        second = session_service.get_or_create("s1")

        assert first is second
        assert session_service.session_ids() == ["s1"]

    def test_sessions_are_independent(self, session_service):
        session_service.execute("s1", "mkdir mine")

        assert session_service.execute("s1", "cd mine").error is False
        assert session_service.execute("s2", "cd mine").error is True

    def test_remove(self, session_service):
        session_service.get_or_create("s1")

        assert session_service.remove("s1") is True
        assert session_service.session_ids() == []

    def test_remove_unknown(self, session_service):
        assert session_service.remove("missing") is False

    def test_reset_restores_seed(self, session_service):
        session_service.execute("s1", "rm welcome.txt")
        session_service.execute("s1", "cd /etc")

        session_service.reset("s1")
        state = session_service.get_state("s1")

        assert state.current_path == "/home/user"
        assert state.statistics.file_count == 3
        assert session_service.get_history("s1").commands == []

    def test_limit_evicts_least_recently_used(self, session_service):
        for session_id in ("a", "b", "c"):
            session_service.get_or_create(session_id)

        # Touching "a" makes "b" the oldest
        session_service.get("a")
        session_service.get_or_create("d")

        assert session_service.session_ids() == ["c", "a", "d"]
        with pytest.raises(SessionNotFoundError):
            session_service.get("b")

    def test_get_unknown_does_not_create(self, session_service):
        with pytest.raises(SessionNotFoundError):
            session_service.get("ghost")

        assert session_service.session_ids() == []

    def test_reads_of_unknown_ids_leave_room(self, session_service):
        for i in range(3):
            with pytest.raises(SessionNotFoundError):
                session_service.get_statistics(f"viewer-{i}")

        session_service.execute("s1", "pwd")
        session_service.execute("s2", "pwd")

        assert session_service.session_ids() == ["s1", "s2"]

    def test_limit_defaults_to_settings(self):
        assert SessionService().max_sessions == Settings().max_sessions


class TestSessionViews:
    """Tests for the read-only views"""

    def test_state(self, session_service):
        session_service.execute("s1", "pwd")
        state = session_service.get_state("s1")

        assert state.session_id == "s1"
        assert state.current_path == "/home/user"
        assert state.home_path == "/home/user"
        assert state.prompt == "user@linux-sim:~$"
        assert state.statistics.directory_count == 6

    def test_tree_follows_cd(self, session_service):
        session_service.execute("s1", "cd /etc")
        entries = session_service.get_tree("s1")

        assert [e.name for e in entries] == ["hosts"]

    def test_statistics(self, session_service):
        session_service.execute("s1", "touch a")
        assert session_service.get_statistics("s1").file_count == 4

    def test_history(self, session_service):
        session_service.execute("s1", "pwd")
        session_service.execute("s1", "ls -la")

        history = session_service.get_history("s1")
        assert history.session_id == "s1"
        assert history.commands == ["pwd", "ls -la"]


class TestConcurrency:
    """Tests for per-session serialization"""

    def test_parallel_appends_are_not_lost(self, session_service):
        session_service.execute("s1", "touch log")

        def worker(n):
            for i in range(25):
                session_service.execute("s1", f"echo {n}-{i} >> log")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        content = session_service.execute("s1", "cat log").output
        assert len(content.splitlines()) == 100
        assert len(session_service.get_history("s1").commands) == 102


class TestSettings:
    """Tests for configuration loading"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LINUX_SIM_LOG_LEVEL", raising=False)
        monkeypatch.delenv("LINUX_SIM_MAX_SESSIONS", raising=False)
        monkeypatch.delenv("LINUX_SIM_CORS_ORIGINS", raising=False)

        settings = Settings()
        assert settings.log_level == "INFO"
        assert settings.max_sessions == 100
        assert settings.cors_origins == ["*"]

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("LINUX_SIM_LOG_LEVEL", "debug")
        monkeypatch.setenv("LINUX_SIM_MAX_SESSIONS", "7")
        monkeypatch.setenv("LINUX_SIM_CORS_ORIGINS", "http://a.test, http://b.test")

        settings = Settings()
        assert settings.log_level == "DEBUG"
        assert settings.max_sessions == 7
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_keyword_override(self, monkeypatch):
        monkeypatch.setenv("LINUX_SIM_MAX_SESSIONS", "7")
        assert Settings(max_sessions=2).max_sessions == 2

    def test_unknown_option(self):
        with pytest.raises(ValueError):
            Settings(colour="blue")
