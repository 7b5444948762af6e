from fastapi import APIRouter, Depends

from .. import schemas
from ..dependencies import AuthContext, get_auth_context

router = APIRouter(prefix="/v1/users", tags=["users"])


def _user_response(auth: AuthContext) -> schemas.UserResponse:
    user = auth.user
    if user is None:
        return schemas.UserResponse(
            tg_user_id=auth.tg_user_id,
            validated_via_telegram=auth.validated_via_telegram,
            first_name=None,
            last_name=None,
            username=None,
            language_code=None,
            is_premium=None,
            allows_write_to_pm=None,
            photo_url=None,
        )
    return schemas.UserResponse(
        tg_user_id=user.id,
        validated_via_telegram=auth.validated_via_telegram,
        first_name=user.first_name or None,
        last_name=user.last_name or None,
        username=user.username or None,
        language_code=user.language_code or None,
        is_premium=user.is_premium,
        allows_write_to_pm=user.allows_write_to_pm,
        photo_url=user.photo_url,
    )


@router.get("/me", response_model=schemas.UserResponse)
def get_me(auth: AuthContext = Depends(get_auth_context)):
    return _user_response(auth)
