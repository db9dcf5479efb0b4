"""Auth Routes — exchange email/password for a bearer access token.

Invariants:
    - Only verified accounts receive tokens
    - Unknown email and wrong password are indistinguishable to the caller
"""

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from vaultkeep.api.dependencies import access_token_lifetime, get_account_service
from vaultkeep.config import Settings, get_settings
from vaultkeep.infrastructure.access_tokens import create_access_token
from vaultkeep.schemas.user import TokenResponse, canonical_email
from vaultkeep.services.account_service import AccountService

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/token", response_model=TokenResponse)
async def login(
    form: OAuth2PasswordRequestForm = Depends(),
    accounts: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
):
    """OAuth2 password flow: `username` carries the email address."""
    user = await accounts.authenticate(canonical_email(form.username), form.password)
    token = create_access_token(
        user.id,
        settings.jwt_secret_key,
        settings.jwt_algorithm,
        access_token_lifetime(settings),
    )
    return TokenResponse(access_token=token)
