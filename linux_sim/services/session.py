"""
Session management service for linux-sim.

Each browser session gets its own seeded VirtualFileSystem. A filesystem is
not built for interleaved commands, so every execute/reset on a session runs
under that session's lock. Only commands create sessions; when the cap is
reached the least recently used session is evicted.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import List, Optional

from linux_sim.config import settings
from linux_sim.schemas.commands import CommandHistory, CommandResult, SessionState
from linux_sim.schemas.filesystem import Statistics, TreeEntry
from linux_sim.services.filesystem import Clock, VirtualFileSystem

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a read targets a session that was never created or was evicted"""


class Session:
    """A filesystem plus the lock serializing access to it"""

    def __init__(self, session_id: str, clock: Optional[Clock] = None):
        self.session_id = session_id
        self.fs = VirtualFileSystem(clock=clock)
        self.lock = threading.Lock()


class SessionService:
    """
    Service for managing independent filesystem sessions.

    This service:
    - Creates a freshly seeded filesystem per session id on first command
    - Serializes commands per session
    - Caps the number of live sessions, evicting the least recently used
    """

    def __init__(self, max_sessions: Optional[int] = None, clock: Optional[Clock] = None):
        # Ordered oldest to most recently used
        self.sessions: "OrderedDict[str, Session]" = OrderedDict()
        self.max_sessions = settings.max_sessions if max_sessions is None else max_sessions
        self.clock = clock
        self._lock = threading.Lock()

    def get_or_create(self, session_id: str) -> Session:
        """
        Get an existing session or seed a new one.

        Creating a session at the cap evicts the least recently used one.

        Args:
            session_id: Client-chosen session identifier

        Returns:
            Session for this id
        """
        with self._lock:
            session = self.sessions.get(session_id)
            if session is not None:
                self.sessions.move_to_end(session_id)
                return session

            while self.sessions and len(self.sessions) >= self.max_sessions:
                evicted_id, _ = self.sessions.popitem(last=False)
                logger.info(f"Session limit {self.max_sessions} reached, evicted {evicted_id}")

            session = Session(session_id, clock=self.clock)
            self.sessions[session_id] = session
            logger.info(f"Session created: {session_id}")
            return session

    def get(self, session_id: str) -> Session:
        """
        Look up an existing session without creating one.

        Raises:
            SessionNotFoundError: if the id is unknown
        """
        with self._lock:
            session = self.sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            self.sessions.move_to_end(session_id)
            return session

    def remove(self, session_id: str) -> bool:
        """
        Drop a session and its filesystem.

        Returns:
            True if the session was removed, False if not found
        """
        with self._lock:
            if session_id in self.sessions:
                del self.sessions[session_id]
                logger.info(f"Session removed: {session_id}")
                return True

        logger.warning(f"Attempted to remove non-existent session: {session_id}")
        return False

    def reset(self, session_id: str) -> Session:
        """Replace a session's filesystem with a freshly seeded one"""
        session = self.get_or_create(session_id)
        with session.lock:
            session.fs = VirtualFileSystem(clock=self.clock)
        logger.info(f"Session reset: {session_id}")
        return session

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self.sessions)

    def execute(self, session_id: str, command: str) -> CommandResult:
        """
        Run a command line in a session, creating the session if needed.

        Args:
            session_id: Session identifier
            command: Raw command line

        Returns:
            CommandResult from the session's filesystem
        """
        start_time = time.time()
        session = self.get_or_create(session_id)

        with session.lock:
            result = session.fs.execute(command)

        process_time = (time.time() - start_time) * 1000  # ms
        logger.info(f"Command {command!r} processed in {process_time:.2f}ms for {session_id} (error={result.error})")

        return result

    def get_state(self, session_id: str) -> SessionState:
        """Snapshot of path, prompt and statistics for display refresh"""
        session = self.get(session_id)

        with session.lock:
            fs = session.fs
            return SessionState(
                session_id=session_id,
                current_path=fs.get_current_path(),
                home_path=fs.get_home_path(),
                prompt=fs.get_prompt(),
                statistics=fs.get_statistics()
            )

    def get_tree(self, session_id: str) -> List[TreeEntry]:
        session = self.get(session_id)
        with session.lock:
            return session.fs.get_tree()

    def get_statistics(self, session_id: str) -> Statistics:
        session = self.get(session_id)
        with session.lock:
            return session.fs.get_statistics()

    def get_history(self, session_id: str) -> CommandHistory:
        session = self.get(session_id)
        with session.lock:
            return CommandHistory(
                session_id=session_id,
                commands=session.fs.get_command_history()
            )


# Global session service instance
session_service = SessionService()
