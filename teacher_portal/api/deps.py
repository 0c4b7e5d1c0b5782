"""
API Dependencies

Reusable dependencies for API routes: the session store and the current
teacher session, resolved from the session cookie.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status

from teacher_portal.core.config import settings
from teacher_portal.services.navigation import Navigator
from teacher_portal.services.session_service import SessionStore, TeacherSession, session_store


def get_session_store() -> SessionStore:
    return session_store


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_session(
    token: Annotated[Optional[str], Depends(get_session_token)],
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> TeacherSession:
    """
    Dependency to get the current teacher session.

    Raises:
        HTTPException: 401 if the cookie is missing, invalid or names a
            session that no longer exists.
    """
    session = store.get_session(token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return session


async def get_navigator(
    session: Annotated[TeacherSession, Depends(get_current_session)],
) -> Navigator:
    return session.navigator


CurrentSession = Annotated[TeacherSession, Depends(get_current_session)]
CurrentNavigator = Annotated[Navigator, Depends(get_navigator)]
