from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from identity.api.deps import get_identity_profile, get_request_time, get_session_token, get_xsrf_token
from identity.api.schemas import EventResponse, PublicUserResponse, SessionResponse, UsersInfoResponse
from identity.core.settings import get_settings
from identity.db.session import get_db
from identity.providers.profile import ExternalIdentityProfile
from identity.services.repository import (
    get_or_create_user_on_session,
    get_user_events,
    get_user_on_session,
    get_users_info,
)

router = APIRouter(tags=["user"])


def _parse_user_ids(raw: str) -> list[int]:
    try:
        ids = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ids must be a comma separated list of integers")
    if not ids or any(i <= 0 for i in ids):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ids must be positive integers")
    return list(dict.fromkeys(ids))


@router.post("/user", response_model=SessionResponse)
def create_user(
    response: Response,
    db: Session = Depends(get_db),
    profile: ExternalIdentityProfile = Depends(get_identity_profile),
    session_token: str | None = Depends(get_session_token),
    xsrf_token: str | None = Depends(get_xsrf_token),
    request_time: datetime = Depends(get_request_time),
) -> SessionResponse:
    view, created = get_or_create_user_on_session(
        db,
        session_token=session_token,
        xsrf_token=xsrf_token,
        profile=profile,
        request_time=request_time,
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
    return SessionResponse.from_view(view)


@router.get("/user", response_model=SessionResponse)
def read_user(
    db: Session = Depends(get_db),
    profile: ExternalIdentityProfile = Depends(get_identity_profile),
    session_token: str | None = Depends(get_session_token),
) -> SessionResponse:
    return SessionResponse.from_view(get_user_on_session(db, session_token=session_token, profile=profile))


@router.get("/user/events", response_model=list[EventResponse])
def read_user_events(
    db: Session = Depends(get_db),
    profile: ExternalIdentityProfile = Depends(get_identity_profile),
) -> list[EventResponse]:
    return [EventResponse.from_view(e) for e in get_user_events(db, profile=profile)]


@router.get("/users-info", response_model=UsersInfoResponse)
def read_users_info(ids: str = Query(...), db: Session = Depends(get_db)) -> UsersInfoResponse:
    max_batch = get_settings().max_users_info_batch
    user_ids = _parse_user_ids(ids)
    # Fail fast before touching the database.
    if len(user_ids) > max_batch:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {max_batch} users can be requested at once",
        )

    users = get_users_info(db, user_ids=user_ids, max_batch=max_batch)
    return UsersInfoResponse(users=[PublicUserResponse.from_view(u) for u in users])
