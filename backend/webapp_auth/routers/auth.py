from fastapi import APIRouter, HTTPException

from .. import schemas
from ..config import settings
from ..telegram_auth import check_init_data

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post(
    "/verify",
    response_model=schemas.VerifyResponse,
    responses={401: {"model": schemas.ErrorResponse}},
)
def verify(payload: schemas.VerifyRequest):
    """Verify an initData string sent in the request body.

    Rejections surface through the ``InitDataError`` handler registered in main.
    """
    if settings.bot_token is None:
        raise HTTPException(status_code=500, detail="BOT_TOKEN is required to validate initData")

    verified = check_init_data(
        init_data=payload.init_data,
        bot_token=settings.bot_token,
        max_age_seconds=settings.telegram_init_data_max_age_seconds,
    )
    return schemas.VerifyResponse(auth_date=verified.auth_date, user=verified.user)
