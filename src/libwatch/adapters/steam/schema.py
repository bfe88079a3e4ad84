"""Pydantic models describing the Steam Web API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class SteamBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class OwnedGamePayload(SteamBaseModel):
    appid: int
    name: str | None = None
    img_logo_url: str | None = None
    img_icon_url: str | None = None
    playtime_forever: int | None = None

    _normalize_text = field_validator("name", "img_logo_url", "img_icon_url", mode="before")(
        _blank_to_none
    )


class OwnedGames(SteamBaseModel):
    # Private profiles answer with an empty object, so both fields are optional.
    game_count: int | None = None
    games: list[OwnedGamePayload] | None = None


class OwnedGamesResponse(SteamBaseModel):
    response: OwnedGames


class PlayerSummary(SteamBaseModel):
    steamid: str
    personaname: str
    avatarfull: str | None = None

    _normalize_avatar = field_validator("avatarfull", mode="before")(_blank_to_none)


class PlayerSummaries(SteamBaseModel):
    players: list[PlayerSummary] = Field(default_factory=list[PlayerSummary])


class PlayerSummariesResponse(SteamBaseModel):
    response: PlayerSummaries


class NewsItemPayload(SteamBaseModel):
    gid: str
    title: str = ""
    url: str | None = None
    date: int
    feedlabel: str | None = None

    @field_validator("gid", mode="before")
    @classmethod
    def _coerce_gid(cls, value: int | str) -> str:
        return str(value)


class AppNews(SteamBaseModel):
    appid: int
    newsitems: list[NewsItemPayload] = Field(default_factory=list[NewsItemPayload])
    count: int | None = None


class NewsResponse(SteamBaseModel):
    appnews: AppNews
