"""File-backed session persistence.

Keeps the single live session in memory and mirrors it to a JSON file.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import aiofiles
import aiofiles.os

from ballot.config import Settings, get_settings
from ballot.lib.exceptions import SessionPersistenceError
from ballot.lib.models import SessionState
from ballot.workflow import OwnerAuthority, VotingWorkflow

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Holder of the one live voting session.

    Features:
    - Loads the last saved session on startup
    - Serializes every call through a single lock
    - Saves after each successful mutating call
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._lock = asyncio.Lock()
        self._workflow: VotingWorkflow | None = None
        self._initialized = False

    async def initialize(self) -> None:
        """Load or create the live session."""
        if self._initialized:
            return

        session = None
        if self.settings.persist:
            self.settings.ensure_state_dir()
            session = await self._read_from_disk()

        if session is None:
            session = SessionState()
            logger.info(f"Started new session {session.session_id}")
        else:
            logger.info(f"Restored session {session.session_id} ({session.phase.value})")

        self._workflow = VotingWorkflow(
            authority=OwnerAuthority(self.settings.admin_identity),
            session=session,
            legacy_reset_signal=self.settings.legacy_reset_signal,
            event_history_limit=self.settings.event_history_limit,
        )
        self._initialized = True

    async def shutdown(self) -> None:
        """Flush the live session."""
        async with self._lock:
            if self._workflow is not None and self.settings.persist:
                try:
                    await self._write_to_disk(self._workflow.session)
                except SessionPersistenceError as e:
                    logger.error(f"Failed to flush session on shutdown: {e}")
        logger.info("Session store shut down")

    @property
    def workflow(self) -> VotingWorkflow:
        """The live workflow. Only valid after initialize()."""
        if self._workflow is None:
            raise SessionPersistenceError("Session store is not initialized")
        return self._workflow

    async def _read_from_disk(self) -> SessionState | None:
        """Read session from disk."""
        path = self.settings.state_file
        if not path.exists():
            return None

        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
            return SessionState.model_validate_json(content)
        except Exception as e:
            logger.error(f"Failed to read session state from {path}: {e}")
            raise SessionPersistenceError(
                f"Failed to load session state: {e}", details={"path": str(path)}
            )

    async def _write_to_disk(self, session: SessionState) -> None:
        """Write session to disk via a temporary file."""
        path = self.settings.state_file
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            content = session.model_dump_json(indent=2)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, path)
            logger.debug(f"Session {session.session_id} written to disk")
        except Exception as e:
            logger.error(f"Failed to write session {session.session_id} to disk: {e}")
            raise SessionPersistenceError(f"Failed to persist session: {e}")

    @asynccontextmanager
    async def transaction(self, write: bool = True) -> AsyncIterator[VotingWorkflow]:
        """
        Exclusive access to the live workflow.

        The session is saved when the block exits normally and ``write`` is
        set. Listeners only see events once the save has succeeded. If the
        block or the save raises, the session is rolled back and the held
        events are dropped.
        """
        await self.initialize()
        async with self._lock:
            workflow = self.workflow
            snapshot = workflow.session.model_copy(deep=True)
            workflow.hold_events()
            try:
                yield workflow
                if write and self.settings.persist:
                    await self._write_to_disk(workflow.session)
            except BaseException:
                workflow.session = snapshot
                workflow.drop_held_events()
                raise
            workflow.release_events()

    async def delete(self) -> None:
        """Remove the saved state file."""
        path = self.settings.state_file
        if path.exists():
            await aiofiles.os.remove(path)
            logger.info(f"Deleted session state {path}")

    def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""
        stats: dict[str, Any] = {
            "persist": self.settings.persist,
            "state_file": str(self.settings.state_file),
        }
        if self._workflow is not None:
            session = self._workflow.session
            stats.update(
                session_id=str(session.session_id),
                phase=session.phase.value,
                voters=len(session.registered_identities),
                proposals=len(session.proposals),
            )
        return stats


# =============================================================================
# Module-level store instance
# =============================================================================


_default_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """Get the default session store instance."""
    global _default_store
    if _default_store is None:
        _default_store = SessionStore()
        await _default_store.initialize()
    return _default_store


async def close_session_store() -> None:
    """Close the default session store."""
    global _default_store
    if _default_store:
        await _default_store.shutdown()
        _default_store = None
