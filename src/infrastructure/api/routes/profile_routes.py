from __future__ import annotations

from fastapi import APIRouter, Depends, File, Response, UploadFile

from src.application.dtos.common_dto import ActionResponse, ErrorDetail
from src.application.dtos.profile_dto import (
    AvatarUploadResponse,
    ProfileActionResponse,
    ProfileResponse,
    UpdateProfileBody,
)
from src.application.use_cases.manage_avatar import DeleteAvatarUseCase, UploadAvatarUseCase
from src.application.use_cases.update_profile import UpdateProfileUseCase
from src.domain.services.authorization_service import Denied, require_auth
from src.infrastructure.api.access import status_for
from src.infrastructure.api.dependencies import (
    get_avatar_storage,
    get_optional_user,
    get_profile_repo,
)
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.storage.avatar_storage import AvatarStorage

SOURCE = __name__

router = APIRouter(
    prefix="/profile",
    tags=["Profile"],
    responses={
        401: {"description": "Unauthorized - No signed-in user"},
        400: {"description": "Bad Request - Input failed validation"},
    },
)


@router.patch(
    "",
    response_model=ProfileActionResponse,
    summary="Update Profile",
    description="""
    Update the full name and bio of the signed-in user.

    - Full name must be 100 characters or less
    - Bio must be 500 characters or less
    - Empty values clear the field
    """,
)
def update_profile(
    body: UpdateProfileBody,
    response: Response,
    user=Depends(get_optional_user),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    decision = require_auth(user, source=f"{SOURCE}:update_profile")
    if isinstance(decision, Denied):
        response.status_code = status_for(decision.code)
        return ProfileActionResponse(success=False, error=ErrorDetail(message=decision.message, code=decision.code))

    result = UpdateProfileUseCase(profile_repo=profiles).execute(user.id, body.full_name, body.bio)
    if not result.success:
        response.status_code = status_for(result.error.code)
        return ProfileActionResponse.from_result(result)
    return ProfileActionResponse(
        success=True,
        message=result.message,
        profile=ProfileResponse.from_entity(result.data["profile"]),
    )


@router.post(
    "/avatar",
    response_model=AvatarUploadResponse,
    summary="Upload Avatar",
    description="""
    Replace the avatar of the signed-in user.

    **Supported formats**: JPEG, PNG, WebP, GIF
    **Maximum file size**: 2MB
    """,
)
async def upload_avatar(
    response: Response,
    avatar: UploadFile | None = File(None, description="Avatar image"),
    user=Depends(get_optional_user),
    storage: AvatarStorage = Depends(get_avatar_storage),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    decision = require_auth(user, source=f"{SOURCE}:upload_avatar")
    if isinstance(decision, Denied):
        response.status_code = status_for(decision.code)
        return AvatarUploadResponse(success=False, error=ErrorDetail(message=decision.message, code=decision.code))

    data = await avatar.read() if avatar is not None else None
    content_type = avatar.content_type if avatar is not None else None
    result = UploadAvatarUseCase(storage=storage, profile_repo=profiles).execute(user.id, data, content_type)
    if not result.success:
        response.status_code = status_for(result.error.code)
        return AvatarUploadResponse(
            success=False, error=ErrorDetail(message=result.error.message, code=result.error.code)
        )
    return AvatarUploadResponse(success=True, avatar_url=result.data["avatar_url"])


@router.delete(
    "/avatar",
    response_model=ActionResponse,
    summary="Delete Avatar",
    description="Remove the avatar image from storage and clear it on the profile.",
)
def delete_avatar(
    response: Response,
    user=Depends(get_optional_user),
    storage: AvatarStorage = Depends(get_avatar_storage),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    decision = require_auth(user, source=f"{SOURCE}:delete_avatar")
    if isinstance(decision, Denied):
        response.status_code = status_for(decision.code)
        return ActionResponse(success=False, error=ErrorDetail(message=decision.message, code=decision.code))

    result = DeleteAvatarUseCase(storage=storage, profile_repo=profiles).execute(user.id)
    if not result.success:
        response.status_code = status_for(result.error.code)
    return ActionResponse.from_result(result)
