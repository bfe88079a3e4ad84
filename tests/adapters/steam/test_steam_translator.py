from __future__ import annotations

from datetime import UTC, datetime

import pytest

from libwatch.adapters.steam import (
    NewsResponse,
    OwnedGamesResponse,
    PlayerSummariesResponse,
    parse_news,
    parse_owned_items,
    parse_profile,
)


def _owned(body: dict[str, object]) -> OwnedGamesResponse:
    return OwnedGamesResponse.model_validate({"response": body})


def test_owned_items_are_translated_in_order() -> None:
    response = _owned(
        {
            "game_count": 2,
            "games": [
                {"appid": 570, "name": "Dota 2", "img_logo_url": "logo", "playtime_forever": 42},
                {"appid": 10, "img_icon_url": "icon"},
            ],
        }
    )

    records = parse_owned_items(response, external_id="u")

    assert [record.item_id for record in records] == ["570", "10"]
    assert records[0].name == "Dota 2"
    assert records[0].logo_fragment == "logo"
    assert records[0].playtime_minutes == 42
    # Unnamed items fall back to their id, icons stand in for missing logos.
    assert records[1].name == "10"
    assert records[1].logo_fragment == "icon"


def test_missing_game_list_yields_nothing(caplog: pytest.LogCaptureFixture) -> None:
    records = parse_owned_items(_owned({"game_count": 3}), external_id="u")

    assert records == []
    assert "returned no list" in caplog.text


def test_count_mismatch_trusts_the_list(caplog: pytest.LogCaptureFixture) -> None:
    response = _owned({"game_count": 5, "games": [{"appid": 1}]})

    records = parse_owned_items(response, external_id="u")

    assert len(records) == 1
    assert "returned 1" in caplog.text


def test_profile_matches_the_requested_id() -> None:
    response = PlayerSummariesResponse.model_validate(
        {
            "response": {
                "players": [
                    {"steamid": "other", "personaname": "Other"},
                    {"steamid": "u", "personaname": "Gabe", "avatarfull": "http://a"},
                ]
            }
        }
    )

    profile = parse_profile(response, external_id="u")

    assert profile is not None
    assert profile.display_name == "Gabe"
    assert profile.avatar_url == "http://a"
    assert parse_profile(response, external_id="missing") is None


def test_news_entries_carry_utc_timestamps() -> None:
    response = NewsResponse.model_validate(
        {
            "appnews": {
                "appid": 570,
                "newsitems": [
                    {
                        "gid": "55",
                        "title": "Patch",
                        "url": "https://store/news/55",
                        "date": 1_714_564_800,
                        "feedlabel": "Community Announcements",
                    }
                ],
            }
        }
    )

    entries = parse_news(response)

    assert len(entries) == 1
    assert entries[0].news_id == "55"
    assert entries[0].published_at == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    assert entries[0].feed_label == "Community Announcements"
