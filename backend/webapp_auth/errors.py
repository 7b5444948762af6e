from enum import Enum


class InitDataErrorKind(str, Enum):
    INVALID_FORMAT = "invalid_format"
    MISSING_HASH = "missing_hash"
    MISSING_USER = "missing_user"
    MISSING_AUTH_DATE = "missing_auth_date"
    INVALID_AUTH_DATE = "invalid_auth_date"
    EXPIRED = "expired"
    INVALID_HASH = "invalid_hash"
    USER_DECODE_ERROR = "user_decode_error"


class InitDataError(Exception):
    """Base class for every initData rejection.

    Subclasses fix ``kind`` and a default ``reason``. The underlying cause, when
    there is one, is attached with ``raise ... from exc`` and is available as
    ``__cause__``.
    """

    kind: InitDataErrorKind
    default_reason = "invalid initData"

    def __init__(self, reason: str | None = None):
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class InvalidFormat(InitDataError):
    kind = InitDataErrorKind.INVALID_FORMAT
    default_reason = "invalid data format"


class MissingHash(InitDataError):
    kind = InitDataErrorKind.MISSING_HASH
    default_reason = "hash field missing"


class MissingUser(InitDataError):
    kind = InitDataErrorKind.MISSING_USER
    default_reason = "user field missing"


class MissingAuthDate(InitDataError):
    kind = InitDataErrorKind.MISSING_AUTH_DATE
    default_reason = "auth_date field missing"


class InvalidAuthDate(InitDataError):
    kind = InitDataErrorKind.INVALID_AUTH_DATE
    default_reason = "invalid auth_date"


class Expired(InitDataError):
    kind = InitDataErrorKind.EXPIRED
    default_reason = "data is too old"


class InvalidHash(InitDataError):
    kind = InitDataErrorKind.INVALID_HASH
    default_reason = "invalid hash"


class UserDecodeError(InitDataError):
    kind = InitDataErrorKind.USER_DECODE_ERROR
    default_reason = "invalid user payload"
