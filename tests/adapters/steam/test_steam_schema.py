from __future__ import annotations

import pytest
from pydantic import ValidationError

from libwatch.adapters.steam import (
    NewsResponse,
    OwnedGamesResponse,
    PlayerSummariesResponse,
)


def test_owned_games_blank_strings_become_none() -> None:
    response = OwnedGamesResponse.model_validate(
        {
            "response": {
                "game_count": 1,
                "games": [{"appid": 10, "name": " ", "img_logo_url": "", "extra": True}],
            }
        }
    )

    assert response.response.games is not None
    game = response.response.games[0]
    assert game.appid == 10
    assert game.name is None
    assert game.img_logo_url is None


def test_private_profile_answers_with_empty_body() -> None:
    response = OwnedGamesResponse.model_validate({"response": {}})

    assert response.response.games is None
    assert response.response.game_count is None


def test_missing_response_object_is_rejected() -> None:
    with pytest.raises(ValidationError):
        OwnedGamesResponse.model_validate({})


def test_news_gid_is_coerced_to_string() -> None:
    response = NewsResponse.model_validate(
        {"appnews": {"appid": 570, "newsitems": [{"gid": 123, "date": 1_700_000_000}]}}
    )

    assert response.appnews.newsitems[0].gid == "123"
    assert response.appnews.newsitems[0].title == ""


def test_player_summaries_default_to_no_players() -> None:
    response = PlayerSummariesResponse.model_validate({"response": {}})

    assert response.response.players == []
