from __future__ import annotations

from datetime import timedelta

import pytest

from libwatch.domain.model import ThrottleDecision
from libwatch.domain.reconciliation import DEFAULT_COOLDOWN, ThrottleGate
from tests.helpers.library import BASE_TIME


def test_default_cooldown_is_six_hours() -> None:
    assert ThrottleGate().cooldown == timedelta(hours=6) == DEFAULT_COOLDOWN


def test_never_checked_user_proceeds() -> None:
    assert ThrottleGate().decide(None, now=BASE_TIME) is ThrottleDecision.PROCEED


@pytest.mark.parametrize(
    ("age", "expected"),
    [
        (timedelta(minutes=1), ThrottleDecision.SKIP),
        (timedelta(hours=5, minutes=59), ThrottleDecision.SKIP),
        (timedelta(hours=6), ThrottleDecision.PROCEED),
        (timedelta(days=2), ThrottleDecision.PROCEED),
    ],
)
def test_decision_depends_on_age_of_last_check(age: timedelta, expected: ThrottleDecision) -> None:
    gate = ThrottleGate()

    assert gate.decide(BASE_TIME - age, now=BASE_TIME) is expected


def test_custom_cooldown() -> None:
    gate = ThrottleGate(cooldown=timedelta(minutes=10))

    assert gate.decide(BASE_TIME - timedelta(minutes=9), now=BASE_TIME) is ThrottleDecision.SKIP
    assert gate.decide(BASE_TIME - timedelta(minutes=11), now=BASE_TIME) is ThrottleDecision.PROCEED


def test_next_check_at() -> None:
    gate = ThrottleGate()

    assert gate.next_check_at(None) is None
    assert gate.next_check_at(BASE_TIME) == BASE_TIME + timedelta(hours=6)
