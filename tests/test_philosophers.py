import pytest

from vzporedno.philosophers import (
    PHILOSOPHERS,
    Strategy,
    Table,
    dine,
    fork_order,
)


def test_fork_order_neighbours():
    assert fork_order(0, Strategy.LOCKS) == (0, 1)
    assert fork_order(4, Strategy.LOCKS) == (4, 0)


@pytest.mark.parametrize("strategy", [Strategy.ORDERED, Strategy.CHANNELS])
def test_fork_order_last_philosopher_swaps(strategy):
    assert fork_order(4, strategy) == (0, 4)
    assert fork_order(2, strategy) == (2, 3)


def test_fork_order_rejects_unknown_philosopher():
    with pytest.raises(ValueError):
        fork_order(PHILOSOPHERS, Strategy.ORDERED)


@pytest.mark.parametrize(
    "strategy",
    [Strategy.PICKING, Strategy.TRY_LOCK, Strategy.ORDERED, Strategy.CHANNELS],
)
def test_controlled_strategies_never_share_a_fork(strategy):
    dinner = dine(2, strategy, 0.001)
    assert dinner.conflicts == 0
    eating = [e for e in dinner.events if "is eating" in e]
    assert len(eating) == 2 * PHILOSOPHERS
    for philosopher in range(PHILOSOPHERS):
        assert f"Philosopher {philosopher} is eating 1 ." in eating
        assert f"Philosopher {philosopher} is eating 2 ." in eating


def test_uncontrolled_everyone_still_eats():
    dinner = dine(1, Strategy.UNCONTROLLED, 0.001)
    eating = [e for e in dinner.events if "is eating" in e]
    assert len(eating) == PHILOSOPHERS


def test_each_philosopher_approaches_first_and_leaves_last():
    dinner = dine(1, "ordered", 0.0)
    for philosopher in range(PHILOSOPHERS):
        mine = [e for e in dinner.events if e.startswith(f"Philosopher {philosopher} ")]
        assert mine[0] == f"Philosopher {philosopher} approached."
        assert mine[-1] == f"Philosopher {philosopher} left."


def test_no_dishes_means_no_eating():
    dinner = dine(0, Strategy.ORDERED, 0.0)
    assert len(dinner.events) == 2 * PHILOSOPHERS
    assert not any("is eating" in e for e in dinner.events)


def test_session_alone_returns_dishes_eaten():
    table = Table(Strategy.PICKING, delay=0.0)
    assert table.session(2, 3) == 3
    assert "Philosopher 2 took fork 2 ." in table.events
    assert "Philosopher 2 took fork 3 ." in table.events
    assert table.conflicts == 0


def test_unknown_strategy_is_rejected():
    with pytest.raises(ValueError):
        dine(1, "bogus", 0.0)