from __future__ import annotations

import threading

from libwatch.domain.reconciliation import UserLocks


def test_hold_marks_lock_as_held() -> None:
    locks = UserLocks()

    with locks.hold("a"):
        assert locks.is_held("a")
        assert not locks.is_held("b")
    assert not locks.is_held("a")
    assert len(locks) == 1


def test_same_user_is_serialised_across_threads() -> None:
    locks = UserLocks()
    inside = threading.Event()
    release = threading.Event()
    order: list[str] = []

    def first() -> None:
        with locks.hold("a"):
            order.append("first-in")
            inside.set()
            release.wait(timeout=5)
            order.append("first-out")

    def second() -> None:
        inside.wait(timeout=5)
        with locks.hold("a"):
            order.append("second-in")

    threads = [threading.Thread(target=first), threading.Thread(target=second)]
    for thread in threads:
        thread.start()
    inside.wait(timeout=5)
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert order == ["first-in", "first-out", "second-in"]


def test_different_users_do_not_block_each_other() -> None:
    locks = UserLocks()

    with locks.hold("a"), locks.hold("b"):
        assert locks.is_held("a")
        assert locks.is_held("b")
