"""
Session Service

A teacher session bundles the authenticated teacher, the httpx client whose
cookie jar carries the upstream credentials, and the session's Navigator.
Sessions live in memory; the browser only holds a signed token naming one.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Set, Tuple

import httpx

from teacher_portal.core.cache import TTLCache
from teacher_portal.core.config import settings
from teacher_portal.core.exceptions import RemoteError
from teacher_portal.core.http_client import build_client
from teacher_portal.core.security import create_session_token, decode_session_token
from teacher_portal.schemas.teacher import Teacher
from teacher_portal.services import gateway
from teacher_portal.services.navigation import Navigator


logger = logging.getLogger(__name__)


ClientFactory = Callable[[], httpx.AsyncClient]


@dataclass(eq=False)
class TeacherSession:
    id: str
    teacher: Teacher
    client: httpx.AsyncClient
    navigator: Navigator
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


async def _release(session: TeacherSession) -> None:
    session.navigator.close()
    await session.client.aclose()
    logger.info("Session %s closed for %s", session.id, session.teacher.uni_reg_id)


class SessionStore:
    """
    In-memory session registry.

    Sessions expire after SESSION_EXPIRE_MINUTES; the least recently used
    session is dropped when MAX_SESSIONS is reached. Either way its
    navigator is cancelled and its client closed.
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        max_sessions: Optional[int] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self._client_factory = client_factory or build_client
        self._sessions: TTLCache[TeacherSession] = TTLCache(
            max_size=max_sessions or settings.MAX_SESSIONS,
            default_ttl=ttl_seconds or settings.SESSION_EXPIRE_MINUTES * 60,
            on_evict=self._on_evict,
        )
        self._closing: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._sessions)

    def _on_evict(self, session_id: str, session: TeacherSession) -> None:
        logger.info("Session %s expired", session_id)
        session.navigator.close()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(session.client.aclose())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    def purge_expired(self) -> int:
        """Release every session whose TTL has lapsed, read or not."""
        return self._sessions.purge_expired()

    def stats(self) -> Dict[str, Any]:
        return self._sessions.stats()

    async def login(self, uni_reg_id: str, password: str) -> Tuple[TeacherSession, str]:
        """
        Authenticate a teacher and open a session.

        Args:
            uni_reg_id: Teacher's registration id.
            password: Teacher's password.

        Returns:
            The new session and the signed token naming it.

        Raises:
            AuthError: If the credentials were rejected.
            RemoteError: If the login service could not be reached.
        """
        self.purge_expired()
        client = self._client_factory()
        try:
            teacher = await gateway.login_teacher(uni_reg_id, password, client)
        except BaseException:
            await client.aclose()
            raise

        if settings.admin_login_enabled:
            try:
                await gateway.login_admin(settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, client)
            except RemoteError as e:
                logger.warning("Admin login failed, admin analytics may be unavailable: %s", e.message)

        session = TeacherSession(
            id=uuid.uuid4().hex,
            teacher=teacher,
            client=client,
            navigator=Navigator(teacher.assigned_sections, client),
        )
        self._sessions.set(session.id, session)
        logger.info(
            "Session %s opened for %s (%d sections)",
            session.id, teacher.uni_reg_id, len(teacher.assigned_sections),
        )
        return session, create_session_token(session.id)

    def get_session(self, token: Optional[str]) -> Optional[TeacherSession]:
        """Resolve a session token, or None if it is invalid or expired."""
        self.purge_expired()
        if not token:
            return None
        session_id = decode_session_token(token)
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    async def logout(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id)
        if session is None:
            return False
        await _release(session)
        return True

    async def close_all(self) -> None:
        """Release every session; used at shutdown."""
        for session in self._sessions.drain():
            await _release(session)
        if self._closing:
            await asyncio.gather(*self._closing, return_exceptions=True)


# Global session store
session_store = SessionStore()
