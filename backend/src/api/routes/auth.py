"""Token issuance routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from ...models.auth import TokenResponse
from ...services.auth import AuthService
from ..middleware import AuthContext, get_auth_context, get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/tokens", response_model=TokenResponse)
async def issue_token(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Issue a fresh JWT for the authenticated caller."""
    token, expires_at = auth_service.issue_token_response(auth.user_id)
    logger.info(f"Issued JWT for user {auth.user_id}")
    return TokenResponse(token=token, expires_at=expires_at)
