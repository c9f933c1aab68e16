from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from identity.api.deps import get_request_time, get_session_token, get_xsrf_token
from identity.api.schemas import EventResponse, SessionResponse
from identity.core.cookies import clear_session_cookie, set_session_cookie
from identity.db.session import get_db
from identity.services.repository import (
    agree_to_cookie_policy_for_session,
    expire_session,
    get_or_create_session,
    get_session,
    get_session_events,
)

router = APIRouter(prefix="/session", tags=["session"])


@router.post("", response_model=SessionResponse)
def create_session(
    response: Response,
    db: Session = Depends(get_db),
    session_token: str | None = Depends(get_session_token),
    request_time: datetime = Depends(get_request_time),
) -> SessionResponse:
    view, created = get_or_create_session(db, session_token=session_token, request_time=request_time)
    if created:
        response.status_code = status.HTTP_201_CREATED
    set_session_cookie(response, str(view.id))
    return SessionResponse.from_view(view)


@router.get("", response_model=SessionResponse)
def read_session(
    db: Session = Depends(get_db),
    session_token: str | None = Depends(get_session_token),
) -> SessionResponse:
    return SessionResponse.from_view(get_session(db, session_token=session_token))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    db: Session = Depends(get_db),
    session_token: str | None = Depends(get_session_token),
    xsrf_token: str | None = Depends(get_xsrf_token),
    request_time: datetime = Depends(get_request_time),
) -> Response:
    expire_session(db, session_token=session_token, xsrf_token=xsrf_token, request_time=request_time)
    resp = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_session_cookie(resp)
    return resp


@router.post("/agree-to-cookie-policy", response_model=SessionResponse)
def agree_to_cookie_policy(
    db: Session = Depends(get_db),
    session_token: str | None = Depends(get_session_token),
    xsrf_token: str | None = Depends(get_xsrf_token),
    request_time: datetime = Depends(get_request_time),
) -> SessionResponse:
    view = agree_to_cookie_policy_for_session(
        db, session_token=session_token, xsrf_token=xsrf_token, request_time=request_time
    )
    return SessionResponse.from_view(view)


@router.get("/events", response_model=list[EventResponse])
def read_session_events(
    db: Session = Depends(get_db),
    session_token: str | None = Depends(get_session_token),
) -> list[EventResponse]:
    return [EventResponse.from_view(e) for e in get_session_events(db, session_token=session_token)]
