import threading

import pytest

from vzporedno.readers_writers import Book, Strategy, main, run


@pytest.mark.parametrize("strategy", list(Strategy))
def test_every_write_happens(strategy):
    session = run(writers=2, readers=1, cycles=3, strategy=strategy)
    assert session.writes == 2 * 3
    for ident in (1, 2):
        for cycle in range(3):
            assert f"Writer {ident} start {cycle}" in session.events
            assert f"Writer {ident} finish {cycle}" in session.events


@pytest.mark.parametrize("strategy", [Strategy.MUTEX, Strategy.COUNTING,
                                      Strategy.SEMAPHORE, Strategy.RWLOCK])
def test_guarded_strategies_have_no_conflicts(strategy):
    session = run(writers=2, readers=1, cycles=4, strategy=strategy)
    assert session.conflicts == 0


def test_mutex_admits_one_reader_at_a_time():
    session = run(writers=1, readers=3, cycles=3, strategy=Strategy.MUTEX)
    assert session.max_readers <= 1
    assert session.conflicts == 0


def test_rwlock_with_several_readers():
    session = run(writers=2, readers=3, cycles=3, strategy="rwlock")
    assert session.conflicts == 0
    assert session.writes == 6


def test_readers_always_finish_what_they_start():
    session = run(writers=1, readers=2, cycles=3, strategy=Strategy.RWLOCK)
    for ident in (1, 2):
        starts = session.events.count(f"Reader {ident} start")
        finishes = session.events.count(f"Reader {ident} finish")
        assert starts == finishes
    assert session.reads == sum(line.endswith("start") and line.startswith("Reader")
                                for line in session.events)


def test_writer_start_precedes_finish():
    session = run(writers=1, readers=0, cycles=2, strategy=Strategy.MUTEX)
    assert session.events == [
        "Writer 1 start 0", "Writer 1 finish 0",
        "Writer 1 start 1", "Writer 1 finish 1",
    ]


def test_uncontrolled_book_notices_overlap():
    book = Book(Strategy.UNCONTROLLED)
    with book.writing():
        with book.reading():
            assert book.readers == 1
    assert book.conflicts == 1
    assert book.readers == 0 and book.writers == 0


def test_rwlock_book_lets_readers_share():
    book = Book(Strategy.RWLOCK)
    inside = threading.Barrier(2)

    def read():
        with book.reading():
            inside.wait(timeout=5)

    threads = [threading.Thread(target=read) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)
    assert book.max_readers == 2
    assert book.reads == 2
    assert book.conflicts == 0


def test_counting_book_blocks_writer_while_reading():
    book = Book(Strategy.COUNTING)
    entered = threading.Event()

    def write():
        with book.writing():
            entered.set()

    with book.reading():
        thread = threading.Thread(target=write)
        thread.start()
        assert not entered.wait(0.05)
    thread.join(timeout=5)
    assert entered.is_set()
    assert book.conflicts == 0


def test_negative_arguments_are_rejected():
    with pytest.raises(ValueError):
        run(writers=-1, readers=0, cycles=1, strategy=Strategy.MUTEX)


def test_unknown_strategy_is_rejected():
    with pytest.raises(ValueError):
        Book("nobody")


def test_main_prints_log(capsys):
    assert main(["-w", "1", "-r", "1", "-c", "1", "--strategy", "mutex"]) == 0
    out = capsys.readouterr().out
    assert "Writer 1 start 0" in out
    assert "Writer 1 finish 0" in out