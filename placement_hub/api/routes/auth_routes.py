"""
Authentication Routes

POST /auth/signup - Register new account
POST /auth/login - Login and get JWT token
POST /auth/logout - End the current session
GET /auth/me - Current identity and resolved role
"""

import logging

from fastapi import APIRouter, Body, Depends

from placement_hub.core.auth import get_remote, get_session_context
from placement_hub.core.exceptions import ConflictError
from placement_hub.core.session import SessionContext
from placement_hub.schemas.schemas import (
    ActionResponse, LoginRequest, Notification, SessionResponse, TokenResponse
)
from placement_hub.services.role_resolver import RoleResolver
from placement_hub.services.validation import validate_signup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=ActionResponse, status_code=201)
async def signup(payload: dict = Body(...), remote=Depends(get_remote)):
    """
    Register a new account.

    Field problems come back as violations (422). The chosen role and the
    roll number are kept as account metadata.
    """
    request = validate_signup(payload).unwrap()

    try:
        identity = await remote.sign_up(
            request.email,
            request.password,
            {
                "full_name": request.full_name,
                "roll_no": request.roll_no,
                "role": request.role.value,
            },
        )
    except ConflictError:
        raise ConflictError(
            "An account with this email already exists. Please sign in instead.",
            title="Account Exists",
        )

    logger.info(f"[AUTH] registered {identity.user_id} as {request.role.value}")
    return ActionResponse(
        success=True,
        notification=Notification.success(
            "Account Created!", "Please check your email to verify your account."
        ),
    )


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, remote=Depends(get_remote)):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    identity, token = await remote.sign_in(request.email, request.password)
    return TokenResponse(access_token=token, user_id=identity.user_id)


@router.post("/logout", response_model=ActionResponse)
async def logout(session: SessionContext = Depends(get_session_context), remote=Depends(get_remote)):
    await remote.sign_out(session.identity)
    return ActionResponse(
        success=True,
        notification=Notification.success("Signed out", "You have been signed out."),
    )


@router.get("/me", response_model=SessionResponse)
async def get_me(session: SessionContext = Depends(get_session_context)):
    """
    Current identity with its role. First visits create the student profile
    row, so this may answer 503 while the account is being set up.
    """
    role = await RoleResolver(session.client).role_for(session)
    return SessionResponse(user_id=session.user_id, email=session.identity.email, role=role)
