"""Pydantic models describing the RapidAPI profile hover payload."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class InstagramBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ProfilePicInfo(InstagramBaseModel):
    url: str | None = None

    _normalize_url = field_validator("url", mode="before")(_blank_to_none)


class UserData(InstagramBaseModel):
    username: str
    full_name: str | None = None
    profile_pic_url: str | None = None
    hd_profile_pic_url_info: ProfilePicInfo | None = None
    follower_count: int = 0

    _normalize_text = field_validator("full_name", "profile_pic_url", mode="before")(
        _blank_to_none
    )

    @field_validator("follower_count", mode="before")
    @classmethod
    def _missing_count_is_zero(cls, value: object) -> object:
        return 0 if value is None else value

    @property
    def avatar_url(self) -> str | None:
        """HD picture when available, otherwise the standard one."""

        if self.hd_profile_pic_url_info is not None and self.hd_profile_pic_url_info.url:
            return self.hd_profile_pic_url_info.url
        return self.profile_pic_url


class ProfileHoverResponse(InstagramBaseModel):
    user_data: UserData | None = None
    error: object | None = None

    @property
    def found(self) -> bool:
        return not self.error and self.user_data is not None
