"""Translate Steam payloads into port records and domain values."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from libwatch.domain.model import NewsEntry
from libwatch.domain.ports import OwnedItemRecord, Profile

if TYPE_CHECKING:
    from .schema import (
        NewsItemPayload,
        NewsResponse,
        OwnedGamePayload,
        OwnedGamesResponse,
        PlayerSummariesResponse,
    )

log = getLogger(__name__)


def parse_owned_item(payload: OwnedGamePayload) -> OwnedItemRecord:
    item_id = str(payload.appid)
    return OwnedItemRecord(
        item_id=item_id,
        name=payload.name or item_id,
        logo_fragment=payload.img_logo_url or payload.img_icon_url,
        playtime_minutes=payload.playtime_forever,
    )


def parse_owned_items(response: OwnedGamesResponse, *, external_id: str) -> list[OwnedItemRecord]:
    """Return the reported items, trusting the list over ``game_count`` when they disagree."""

    body = response.response
    if body.games is None:
        if body.game_count:
            log.warning(
                "Steam reported %s items for %s but returned no list", body.game_count, external_id
            )
        return []

    records = [parse_owned_item(game) for game in body.games]
    if body.game_count is not None and body.game_count != len(records):
        log.warning(
            "Steam reported %s items for %s but returned %s",
            body.game_count,
            external_id,
            len(records),
        )
    return records


def parse_profile(response: PlayerSummariesResponse, *, external_id: str) -> Profile | None:
    for player in response.response.players:
        if player.steamid == external_id:
            return Profile(display_name=player.personaname, avatar_url=player.avatarfull)
    return None


def parse_news_entry(payload: NewsItemPayload) -> NewsEntry:
    return NewsEntry(
        news_id=payload.gid,
        title=payload.title,
        url=payload.url,
        published_at=datetime.fromtimestamp(payload.date, tz=UTC),
        feed_label=payload.feedlabel,
    )


def parse_news(response: NewsResponse) -> list[NewsEntry]:
    return [parse_news_entry(item) for item in response.appnews.newsitems]
