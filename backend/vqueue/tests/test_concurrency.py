"""Counters under concurrent writers, against a file-backed SQLite database."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from vqueue.core.database import SQLITE_BUSY_TIMEOUT_MS, configure_sqlite
from vqueue.core.errors import QueueEmptyError
from vqueue.models import Base, Business, Ticket
from vqueue.services.business_service import create_business
from vqueue.services.queue_service import next_customer
from vqueue.services.ticket_service import join_queue

WORKERS = 8


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'queue.db'}",
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_MS / 1000},
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    with SessionLocal() as db:
        create_business(db, slug="cafe", name="Cafe", password="secret")
    yield SessionLocal
    engine.dispose()


def _run_together(SessionLocal, action, count):
    start = threading.Barrier(count)

    def worker(_):
        with SessionLocal() as db:
            start.wait()
            return action(db)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(worker, range(count)))


def test_concurrent_joins_draw_distinct_numbers(file_sessions):
    tickets = _run_together(file_sessions, lambda db: join_queue(db, "cafe"), WORKERS)

    assert sorted(t.number for t in tickets) == list(range(1, WORKERS + 1))
    with file_sessions() as db:
        business = db.query(Business).filter_by(slug="cafe").one()
        assert business.last_issued == WORKERS
        assert business.active_count == WORKERS
        assert db.query(Ticket).count() == WORKERS


def test_concurrent_advances_serve_each_ticket_once(file_sessions):
    with file_sessions() as db:
        for _ in range(WORKERS):
            join_queue(db, "cafe")

    def advance(db):
        try:
            return next_customer(db, "cafe", notify_spots_ahead=0).current_serving
        except QueueEmptyError:
            return None

    # One call more than the queue can take: 0 -> WORKERS + 1 is WORKERS + 1 moves
    results = _run_together(file_sessions, advance, WORKERS + 2)

    moved = sorted(r for r in results if r is not None)
    assert moved == list(range(1, WORKERS + 2))
    assert results.count(None) == 1
    with file_sessions() as db:
        business = db.query(Business).filter_by(slug="cafe").one()
        assert business.current_serving == WORKERS + 1
        assert business.active_count == 0
        statuses = [t.status for t in db.query(Ticket).all()]
        assert statuses == ["served"] * WORKERS
