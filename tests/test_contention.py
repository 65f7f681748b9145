import threading

from vzporedno.contention import (
    greedy_worker,
    livelock,
    polite_worker,
    starvation,
)


def test_workers_do_nothing_without_time():
    lock = threading.Lock()
    assert polite_worker(lock, 0) == 0
    assert greedy_worker(lock, 0) == 0


def test_polite_worker_releases_the_lock():
    lock = threading.Lock()
    assert polite_worker(lock, 0.01) >= 1
    assert not lock.locked()


def test_greedy_worker_releases_the_lock():
    lock = threading.Lock()
    assert greedy_worker(lock, 0.01) >= 1
    assert not lock.locked()


def test_starvation_both_workers_run_at_least_once():
    result = starvation(0.02)
    assert result.polite >= 1
    assert result.greedy >= 1


def test_livelock_without_rounds_does_nothing():
    result = livelock(0, 0.001)
    assert result.events == []
    assert result.rounds == 0
    assert result.resolved is False


def test_livelock_every_take_is_matched_by_a_release():
    result = livelock(30, 0.001)
    assert result.rounds <= 30
    for person in range(2):
        other = (person + 1) % 2
        for fork in (person, other):
            took = result.events.count(f"Person {person} took fork {fork}")
            released = result.events.count(f"Person {person} released fork {fork}")
            assert took == released
        assert result.events.count(f"Person {person} took fork {person}") <= 2 * max(result.rounds, 1)


def test_livelock_resolved_means_both_took_the_other_fork():
    result = livelock(30, 0.001)
    both_ate = all(
        f"Person {p} took fork {(p + 1) % 2}" in result.events for p in range(2)
    )
    assert result.resolved == both_ate