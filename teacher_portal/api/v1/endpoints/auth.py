"""
Authentication Routes

Teacher login, session resume and logout. The session token travels in an
HTTP-only cookie.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from teacher_portal.api.deps import CurrentSession, get_session_store
from teacher_portal.core.config import settings
from teacher_portal.core.exceptions import AuthError, RemoteError
from teacher_portal.middleware.rate_limit import limit_login
from teacher_portal.schemas.teacher import TeacherLogin, TeacherResponse
from teacher_portal.services.session_service import SessionStore


logger = logging.getLogger(__name__)


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=TeacherResponse,
    summary="Login as a teacher",
    dependencies=[Depends(limit_login)],
)
async def login(
    credentials: TeacherLogin,
    response: Response,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> TeacherResponse:
    """
    Authenticate against the upstream teacher login and open a session.

    **Flow:**
    1. Forward the credentials upstream on a fresh session client
    2. Sign the client into the admin analytics service when configured
    3. Set the session cookie

    Raises:
        HTTPException: 401 on rejected credentials, 502 when the login
            service cannot be reached.
    """
    try:
        session, token = await store.login(credentials.uni_reg_id, credentials.password)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        )
    except RemoteError as e:
        logger.warning("Login service unreachable: %s", e.message)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Connection failed",
        )

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=not settings.is_development,
    )
    return TeacherResponse(teacher=session.teacher, message="Login successful")


@router.get(
    "/session",
    response_model=TeacherResponse,
    summary="Resume the current session",
)
async def current_session(session: CurrentSession) -> TeacherResponse:
    """Return the signed-in teacher, or 401 when there is no live session."""
    return TeacherResponse(teacher=session.teacher)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout",
)
async def logout(
    session: CurrentSession,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> Response:
    await store.logout(session.id)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
