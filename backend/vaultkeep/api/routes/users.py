"""User Routes — registration, email verification, email change, password and profile.

Invariants:
    - Routes never contain business logic (delegate to AccountService)
    - Link endpoints (verify, change) authenticate by token, not by bearer header:
      they are opened from an email client
    - Everything under /me acts on the caller resolved from the bearer token
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from vaultkeep.api.dependencies import get_account_service, get_current_user_id
from vaultkeep.core.domain_types import UserId
from vaultkeep.schemas.user import (
    EmailAddress, EmailChangeRequest, PasswordChange, SimpleUserResponse,
    UserCreate, UserResponse,
)
from vaultkeep.services.account_service import AccountService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post(
    "", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: UserCreate, accounts: AccountService = Depends(get_account_service),
):
    """Register an account; a verification link is mailed to `email`."""
    user = await accounts.create_user(body.name, body.email, body.password)
    return UserResponse.model_validate(user)


@router.get("", response_model=list[SimpleUserResponse])
async def list_users(
    _: UserId = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
):
    users = await accounts.list_users()
    return [SimpleUserResponse.model_validate(u) for u in users]


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    user_id: UserId = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
):
    return UserResponse.model_validate(await accounts.get_user(user_id))


@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    body: PasswordChange,
    user_id: UserId = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.change_password(user_id, body.current_password, body.new_password)


@router.post("/me/email/change-request", status_code=status.HTTP_202_ACCEPTED)
async def request_email_change(
    body: EmailChangeRequest,
    user_id: UserId = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
):
    """Stage `new_email`; a confirmation link is mailed."""
    await accounts.request_email_change(user_id, body.new_email)
    return {"message": "Email change requested"}


@router.get("/{user_id}/email/verify")
async def verify_email(
    user_id: UUID,
    token: str = Query(min_length=1),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.verify_email(UserId(user_id), token)
    return {"message": "Email verified"}


@router.get("/{user_id}/email/change")
async def confirm_email_change(
    user_id: UUID,
    token: str = Query(min_length=1),
    email: EmailAddress = Query(),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.confirm_email_change(UserId(user_id), token, email)
    return {"message": "Email changed"}
