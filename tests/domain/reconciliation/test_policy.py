from __future__ import annotations

from libwatch.domain.reconciliation import ReconcilePolicy


def test_logo_url_requires_a_fragment() -> None:
    policy = ReconcilePolicy()

    assert policy.logo_url("10", None) is None
    assert policy.logo_url("10", "") is None


def test_default_logo_url_points_at_steam_media() -> None:
    url = ReconcilePolicy().logo_url("570", "abc123")

    assert url == "http://media.steampowered.com/steamcommunity/public/images/apps/570/abc123.jpg"


def test_defaults_stage_pending_without_notifying() -> None:
    policy = ReconcilePolicy()

    assert policy.stage_pending is True
    assert policy.notify_new_items is False
