from dataclasses import dataclass
import logging

from fastapi import Header, HTTPException

from .config import settings
from .errors import InitDataError
from .schemas import WebAppUser
from .telegram_auth import check_init_data


logger = logging.getLogger("webapp_auth.auth")


@dataclass
class AuthContext:
    tg_user_id: int
    validated_via_telegram: bool
    user: WebAppUser | None = None
    auth_date: int | None = None


def _init_data_from_headers(x_telegram_init_data: str | None, authorization: str | None) -> str | None:
    if x_telegram_init_data:
        return x_telegram_init_data
    if authorization and authorization[:4].lower() == "tma ":
        return authorization[4:].strip() or None
    return None


def get_auth_context(
    x_telegram_init_data: str | None = Header(default=None, alias="X-Telegram-Init-Data"),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tg_user_id: int | None = Header(default=None, alias="X-TG-USER-ID"),
) -> AuthContext:
    init_data = _init_data_from_headers(x_telegram_init_data, authorization)

    if init_data:
        if settings.bot_token is None:
            raise HTTPException(status_code=500, detail="BOT_TOKEN is required to validate initData")

        try:
            verified = check_init_data(
                init_data=init_data,
                bot_token=settings.bot_token,
                max_age_seconds=settings.telegram_init_data_max_age_seconds,
            )
        except InitDataError as exc:
            logger.warning("Rejected initData: kind=%s reason=%s", exc.kind.value, exc.reason)
            raise HTTPException(status_code=401, detail=f"Invalid Telegram initData: {exc.reason}") from exc

        return AuthContext(
            tg_user_id=verified.user.id,
            validated_via_telegram=True,
            user=verified.user,
            auth_date=verified.auth_date,
        )

    if settings.require_telegram_init_data:
        raise HTTPException(status_code=401, detail="X-Telegram-Init-Data header is required")

    if settings.allow_insecure_dev_auth and x_tg_user_id is not None:
        logger.warning("Insecure dev auth used for user %s", x_tg_user_id)
        return AuthContext(tg_user_id=int(x_tg_user_id), validated_via_telegram=False)

    raise HTTPException(status_code=401, detail="Unauthorized")
