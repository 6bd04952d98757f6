"""Process lifecycle: startup aborts on schema failure, shutdown drains the pool."""

import signal

import psycopg2
import pytest

import main
from repositories.record_repo import RecordRepository
from tests.fake_db import FakePool


class LifecyclePool(FakePool):
    def __init__(self):
        super().__init__()
        self.opened = 0
        self.closed_with = []

    def open(self):
        self.opened += 1

    def close(self, timeout=None):
        self.closed_with.append(timeout)
        self.in_use_at_close = self.acquired - self.released


def test_startup_opens_pool_and_initializes_schema():
    db_pool = LifecyclePool()

    returned_pool, repo = main.startup(db_pool)

    assert returned_pool is db_pool
    assert isinstance(repo, RecordRepository)
    assert repo.pool is db_pool
    assert db_pool.opened == 1
    assert len(db_pool.executed) == 3
    assert db_pool.closed_with == []


def test_startup_failure_closes_pool_and_propagates():
    db_pool = LifecyclePool()
    db_pool.fails(psycopg2.OperationalError("connection refused"))

    with pytest.raises(psycopg2.OperationalError):
        main.startup(db_pool)

    assert db_pool.closed_with == [0]


def test_signal_handler_exits_without_draining_on_the_signal_frame(monkeypatch):
    handlers = {}
    monkeypatch.setattr(main.signal, "signal", lambda signum, handler: handlers.__setitem__(signum, handler))

    main.install_signal_handlers()

    assert set(handlers) == {signal.SIGINT, signal.SIGTERM}
    with pytest.raises(SystemExit) as exc:
        handlers[signal.SIGTERM](signal.SIGTERM, None)
    assert exc.value.code == 0


def test_main_drains_pool_after_held_connection_unwinds(monkeypatch):
    db_pool = LifecyclePool()
    monkeypatch.setattr(main, "startup", lambda: (db_pool, RecordRepository(db_pool)))

    def signal_while_holding_connection():
        with db_pool.connection():
            raise SystemExit(0)

    monkeypatch.setattr(main, "install_signal_handlers", signal_while_holding_connection)

    with pytest.raises(SystemExit):
        main.main()

    assert db_pool.closed_with == [main.DB_DRAIN_TIMEOUT_SECONDS]
    assert db_pool.in_use_at_close == 0


def test_main_closes_pool_on_normal_exit(monkeypatch):
    db_pool = LifecyclePool()
    monkeypatch.setattr(main, "startup", lambda: (db_pool, RecordRepository(db_pool)))
    monkeypatch.setattr(main.signal, "signal", lambda signum, handler: None)

    main.main()

    assert db_pool.closed_with == [main.DB_DRAIN_TIMEOUT_SECONDS]
