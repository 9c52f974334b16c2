import random
import threading
from collections import Counter

import pytest

from spreadwars.services.match import Cell, MatchNotFound, MatchRegistry, RegistryBusy


def _registry(**kwargs):
    kwargs.setdefault('width', 6)
    kwargs.setdefault('height', 6)
    kwargs.setdefault('neutral_cells', 4)
    kwargs.setdefault('rng', random.Random(11))
    return MatchRegistry(**kwargs)


def test_starts_with_one_seeded_match():
    reg = _registry()
    assert reg.ids() == [0]
    assert reg.open_match_id == 0
    assert reg.get(0).grid.width == 6


def test_seats_fill_then_roll_to_new_match():
    reg = _registry()
    assert reg.assign_seat() == (0, Cell.RED)
    assert reg.assign_seat() == (0, Cell.BLUE)
    assert reg.assign_seat() == (1, Cell.RED)
    assert reg.open_match_id == 1
    assert reg.assign_seat() == (1, Cell.BLUE)
    assert reg.ids() == [0, 1]
    # The full match stays reachable by id
    assert reg.get(0).is_full()


def test_new_matches_use_configured_grid():
    reg = _registry(width=5, height=3, neutral_cells=0)
    reg.assign_seat()
    reg.assign_seat()
    match_id, _ = reg.assign_seat()
    match = reg.get(match_id)
    assert (match.grid.width, match.grid.height) == (5, 3)
    assert match.grid.cell_counts() == (15, 0, 0, 0)
    assert match.turn_seconds == reg.turn_seconds


def test_get_unknown_raises():
    reg = _registry()
    with pytest.raises(MatchNotFound):
        reg.get(42)


def test_remove_is_irreversible():
    reg = _registry()
    reg.assign_seat()
    reg.assign_seat()
    reg.assign_seat()
    match = reg.get(0)
    assert reg.remove(0)
    assert match.closed
    assert 0 not in reg
    assert not reg.remove(0)
    with pytest.raises(MatchNotFound):
        reg.get(0)
    with pytest.raises(MatchNotFound):
        with reg.locked(0):
            pass
    # A stale handle no longer accepts claims
    assert not match.attempt_claim(Cell.RED, (0, 0))


def test_removing_open_match_opens_a_fresh_one():
    reg = _registry()
    reg.assign_seat()
    assert reg.remove(0)
    assert reg.open_match_id == 1
    assert reg.assign_seat() == (1, Cell.RED)


def test_locked_yields_match_with_lock_held():
    reg = _registry()
    with reg.locked(0) as match:
        assert match.match_id == 0
        acquired = []
        t = threading.Thread(target=lambda: acquired.append(match.lock.acquire(timeout=0.05)))
        t.start()
        t.join()
        assert acquired == [False]


def test_locked_times_out_when_match_is_busy():
    reg = _registry(lock_timeout=0.05)
    match = reg.get(0)
    held = threading.Event()
    release = threading.Event()

    def hold():
        with match.lock:
            held.set()
            release.wait(2)

    t = threading.Thread(target=hold)
    t.start()
    held.wait(2)
    try:
        with pytest.raises(RegistryBusy):
            with reg.locked(0):
                pass
    finally:
        release.set()
        t.join()


def test_concurrent_seat_requests_never_double_assign():
    reg = _registry()
    barrier = threading.Barrier(40)
    seats = []
    lock = threading.Lock()

    def request_seat():
        barrier.wait()
        seat = reg.assign_seat()
        with lock:
            seats.append(seat)

    threads = [threading.Thread(target=request_seat) for _ in range(40)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(seats) == 40
    assert len(set(seats)) == 40
    per_match = Counter(match_id for match_id, _ in seats)
    assert all(count == 2 for count in per_match.values())
    assert len(per_match) == 20
    for match_id in per_match:
        assert reg.get(match_id).is_full()


def test_reset_clears_everything():
    reg = _registry()
    reg.assign_seat()
    reg.assign_seat()
    reg.assign_seat()
    old = reg.get(1)
    reg.reset()
    assert reg.ids() == [0]
    assert old.closed
    assert len(reg) == 1
