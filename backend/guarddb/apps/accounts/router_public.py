# backend/guarddb/apps/accounts/router_public.py

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from guarddb.database import get_db
from guarddb.repository import SqlAlchemyUnitOfWork
from . import schemas, services

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# AGENCY REGISTRATION
# ---------------------------------------------------------------------------


@router.post(
    "/register-agency",
    response_model=schemas.ApiResponse[schemas.RegisterAgencyResult],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new security agency and its administrator",
)
def register_agency(
    payload: schemas.RegisterAgencyRequest,
    db: Session = Depends(get_db),
):
    """
    Self-service agency onboarding.

    Creates the tenant, its four system roles, the default department,
    the admin user and the standard menu tree. Duplicate agencies or admin
    credentials are rejected with 409 and nothing is created.
    """
    result = services.register_agency(SqlAlchemyUnitOfWork(db), payload)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=result.message,
        )
    return result


# ---------------------------------------------------------------------------
# LOGIN
# ---------------------------------------------------------------------------


@router.post(
    "/login",
    response_model=schemas.Token,
    summary="Login with user name (or email) and password",
)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
):
    try:
        user = services.authenticate_user(SqlAlchemyUnitOfWork(db), payload)
    except services.AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc) or "Incorrect user name or password.",
        )

    token, expires_in = services.issue_access_token_for_user(user)
    return schemas.Token(
        access_token=token,
        expires_in=expires_in,
        user=schemas.UserRead.model_validate(user),
    )
