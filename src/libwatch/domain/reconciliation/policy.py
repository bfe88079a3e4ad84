"""Tunable reconciliation policy."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

DEFAULT_COOLDOWN: Final[timedelta] = timedelta(hours=6)
DEFAULT_LOGO_URL_TEMPLATE: Final[str] = (
    "http://media.steampowered.com/steamcommunity/public/images/apps/{item_id}/{fragment}.jpg"
)


@dataclass(slots=True, frozen=True)
class ReconcilePolicy:
    """What a reconciliation cycle does with the delta it computed.

    ``stage_pending`` copies new items into the user's pending queue.
    ``notify_new_items`` sends the owning user one notification per new item after commit.
    """

    cooldown: timedelta = DEFAULT_COOLDOWN
    logo_url_template: str = DEFAULT_LOGO_URL_TEMPLATE
    stage_pending: bool = True
    notify_new_items: bool = False

    def logo_url(self, item_id: str, fragment: str | None) -> str | None:
        if not fragment:
            return None
        return self.logo_url_template.format(item_id=item_id, fragment=fragment)
