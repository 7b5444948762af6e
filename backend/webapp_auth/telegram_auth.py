import hashlib
import hmac
import logging
import re
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping
from urllib.parse import parse_qsl, unquote_plus, urlencode

from pydantic import ValidationError

from .errors import (
    Expired,
    InvalidAuthDate,
    InvalidFormat,
    InvalidHash,
    MissingAuthDate,
    MissingHash,
    MissingUser,
    UserDecodeError,
)
from .schemas import WebAppUser


logger = logging.getLogger(__name__)

MAX_DATA_AGE_SECONDS = 24 * 60 * 60
WEBAPP_DATA_KEY = b"WebAppData"

_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_AUTH_DATE_RE = re.compile(r"([+-]?)0*([0-9]{1,19})")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class VerifiedInitData:
    user: WebAppUser
    auth_date: int
    fields: Mapping[str, str]


def _check_escapes(raw: str) -> None:
    bad = _BAD_ESCAPE_RE.search(raw)
    if bad is not None:
        raise ValueError(f"invalid URL escape {raw[bad.start():bad.start() + 3]!r}")


def parse_init_data(init_data: str) -> tuple[Mapping[str, str], str]:
    """Decode the query string into a read-only field map and the claimed hash.

    Values are decoded exactly once. For repeated keys the first value wins.
    """
    try:
        if ";" in init_data:
            raise ValueError("invalid semicolon separator in query")
        _check_escapes(init_data)
        pairs = parse_qsl(init_data, keep_blank_values=True, errors="strict")
    except ValueError as exc:
        raise InvalidFormat(f"invalid data format: {exc}") from exc

    fields: dict[str, str] = {}
    for key, value in pairs:
        fields.setdefault(key, value)
    return MappingProxyType(fields), fields.get("hash", "")


def validate_required_fields(fields: Mapping[str, str]) -> None:
    if not fields.get("hash"):
        raise MissingHash()
    if not fields.get("user"):
        raise MissingUser()
    if not fields.get("auth_date"):
        raise MissingAuthDate()


def validate_auth_timestamp(
    auth_date: str,
    now: float | None = None,
    max_age_seconds: int = MAX_DATA_AGE_SECONDS,
) -> int:
    """Parse ``auth_date`` as Unix seconds and reject it once older than ``max_age_seconds``.

    Timestamps from the future are accepted; only staleness is bounded.
    """
    match = _AUTH_DATE_RE.fullmatch(auth_date)
    if match is None:
        raise InvalidAuthDate(f"invalid auth_date: {auth_date[:32]!r}")
    auth_timestamp = int(match.group(1) + match.group(2))
    if not _INT64_MIN <= auth_timestamp <= _INT64_MAX:
        raise InvalidAuthDate(f"auth_date out of range: {auth_date[:32]!r}")

    current = time.time() if now is None else now
    if current - auth_timestamp > max_age_seconds:
        raise Expired()
    return auth_timestamp


def build_data_check_string(fields: Mapping[str, str], auth_date: str) -> str:
    lines = [f"{key}={value}" for key, value in fields.items() if key not in ("hash", "auth_date")]
    lines.append(f"auth_date={auth_date}")
    lines.sort()
    return "\n".join(lines)


def derive_secret_key(bot_token: str) -> bytes:
    return hmac.new(WEBAPP_DATA_KEY, bot_token.encode("utf-8"), hashlib.sha256).digest()


def compute_signature(data_check_string: str, bot_token: str) -> str:
    secret_key = derive_secret_key(bot_token)
    return hmac.new(secret_key, data_check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def validate_signature(fields: Mapping[str, str], received_hash: str, bot_token: str) -> None:
    data_check_string = build_data_check_string(fields, fields.get("auth_date", ""))
    expected_hash = compute_signature(data_check_string, bot_token)
    if not hmac.compare_digest(expected_hash.encode("ascii"), received_hash.encode("utf-8")):
        logger.debug("initData signature mismatch (%d fields signed)", len(fields) - 1)
        raise InvalidHash()


def decode_user(raw_user: str) -> WebAppUser:
    """Decode the ``user`` field into a WebAppUser.

    The query-string decoder has already unescaped the value once. A second
    pass only runs when the value is still form-encoded JSON, so names
    containing ``+`` or ``%`` in plain JSON survive untouched. In that second
    pass ``+`` decodes to a space, as in the first.
    """
    payload = raw_user
    if not raw_user.lstrip().startswith("{") and "%" in raw_user:
        try:
            _check_escapes(raw_user)
            payload = unquote_plus(raw_user, errors="strict")
        except ValueError as exc:
            raise UserDecodeError(f"url unescape failed: {exc}") from exc

    try:
        return WebAppUser.model_validate_json(payload)
    except ValidationError as exc:
        raise UserDecodeError(f"json decode failed: {exc.errors()[0]['msg']}") from exc


def check_init_data(
    init_data: str,
    bot_token: str,
    max_age_seconds: int = MAX_DATA_AGE_SECONDS,
    now: float | None = None,
) -> VerifiedInitData:
    fields, received_hash = parse_init_data(init_data)
    validate_required_fields(fields)
    auth_date = validate_auth_timestamp(fields["auth_date"], now=now, max_age_seconds=max_age_seconds)
    validate_signature(fields, received_hash, bot_token)
    user = decode_user(fields["user"])
    logger.debug("initData verified for user %s (auth_date=%s)", user.id, auth_date)
    return VerifiedInitData(user=user, auth_date=auth_date, fields=fields)


def verify_init_data(
    init_data: str,
    bot_token: str,
    max_age_seconds: int = MAX_DATA_AGE_SECONDS,
    now: float | None = None,
) -> WebAppUser:
    """Verify a Mini App initData string and return the signed-in user.

    Raises an ``InitDataError`` subclass describing the first failed check.
    """
    return check_init_data(init_data, bot_token, max_age_seconds=max_age_seconds, now=now).user


def sign_init_data(fields: Mapping[str, str], bot_token: str, auth_date: int | None = None) -> str:
    """Build a signed initData string, the way the client platform would."""
    params = {key: value for key, value in fields.items() if key != "hash"}
    if auth_date is not None:
        params["auth_date"] = str(auth_date)
    params.setdefault("auth_date", str(int(time.time())))

    data_check_string = build_data_check_string(params, params["auth_date"])
    return urlencode({**params, "hash": compute_signature(data_check_string, bot_token)})
