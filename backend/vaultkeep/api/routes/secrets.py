"""Secret Routes — create, update (append version) and read the caller's secrets.

Invariants:
    - Every route resolves the caller from the bearer token; no route takes an owner id
    - PUT never overwrites: it appends a version and returns the new row
    - GET /secrets lists current versions only; history is under /{secret_id}/versions
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, status

from vaultkeep.api.dependencies import get_current_user_id, get_secret_service
from vaultkeep.core.domain_types import SecretId, SecretVersion, UserId
from vaultkeep.schemas.secret import SecretRequest, SecretResponse
from vaultkeep.services.secret_service import SecretService

router = APIRouter(prefix="/api/v1/secrets", tags=["secrets"])


@router.post(
    "", response_model=SecretResponse, status_code=status.HTTP_201_CREATED,
)
async def create_secret(
    body: SecretRequest,
    user_id: UserId = Depends(get_current_user_id),
    secrets: SecretService = Depends(get_secret_service),
):
    secret = await secrets.create_secret(user_id, body.data, body.type)
    return SecretResponse.model_validate(secret)


@router.put("/{secret_id}", response_model=SecretResponse)
async def update_secret(
    secret_id: UUID,
    body: SecretRequest,
    user_id: UserId = Depends(get_current_user_id),
    secrets: SecretService = Depends(get_secret_service),
):
    secret = await secrets.update_secret(
        user_id, SecretId(secret_id), body.data, body.type,
    )
    return SecretResponse.model_validate(secret)


@router.get("", response_model=list[SecretResponse])
async def get_all_secrets(
    user_id: UserId = Depends(get_current_user_id),
    secrets: SecretService = Depends(get_secret_service),
):
    rows = await secrets.get_all_secrets(user_id)
    return [SecretResponse.model_validate(s) for s in rows]


@router.get("/{secret_id}/versions", response_model=list[SecretResponse])
async def get_secret_history(
    secret_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    secrets: SecretService = Depends(get_secret_service),
):
    rows = await secrets.get_secret_history(user_id, SecretId(secret_id))
    return [SecretResponse.model_validate(s) for s in rows]


@router.get("/{secret_id}/versions/{version}", response_model=SecretResponse)
async def get_secret_version(
    secret_id: UUID,
    version: int = Path(ge=0),
    user_id: UserId = Depends(get_current_user_id),
    secrets: SecretService = Depends(get_secret_service),
):
    secret = await secrets.get_secret_version(
        user_id, SecretId(secret_id), SecretVersion(version),
    )
    return SecretResponse.model_validate(secret)
