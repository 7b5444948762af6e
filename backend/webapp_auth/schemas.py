from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class WebAppUser(BaseModel):
    # Unknown keys sent by newer clients are dropped; JSON types are not coerced.
    model_config = ConfigDict(extra="ignore", strict=True, frozen=True)

    id: int
    is_bot: bool = False
    is_premium: bool = False
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    language_code: str = ""
    added_to_attachment_menu: bool = False
    allows_write_to_pm: bool = False
    photo_url: str | None = None

    @field_validator(
        "is_bot",
        "is_premium",
        "first_name",
        "last_name",
        "username",
        "language_code",
        "added_to_attachment_menu",
        "allows_write_to_pm",
        mode="before",
    )
    @classmethod
    def null_to_default(cls, v, info: ValidationInfo):
        if v is None:
            return cls.model_fields[info.field_name].default
        return v


class VerifyRequest(BaseModel):
    init_data: str = Field(min_length=1, max_length=8192)

    @field_validator("init_data")
    @classmethod
    def strip_init_data(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("init_data must not be blank")
        return v


class VerifyResponse(BaseModel):
    ok: bool = True
    auth_date: int
    user: WebAppUser


class UserResponse(BaseModel):
    tg_user_id: int
    validated_via_telegram: bool
    first_name: str | None
    last_name: str | None
    username: str | None
    language_code: str | None
    is_premium: bool | None
    allows_write_to_pm: bool | None
    photo_url: str | None


class ErrorResponse(BaseModel):
    detail: str
    kind: str | None = None
