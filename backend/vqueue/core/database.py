from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from vqueue.core.config import settings
from vqueue.models.business import Base

SQLITE_BUSY_TIMEOUT_MS = 30000


def _connect_args(url: str) -> dict:
    # SQLite connections are shared across the threadpool FastAPI runs sync routes in
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_MS / 1000}
    return {}


def configure_sqlite(engine) -> None:
    """
    Make SQLite transactions take the write lock up front.

    SQLite ignores ``SELECT ... FOR UPDATE``, so each transaction is opened with
    ``BEGIN IMMEDIATE`` instead; concurrent writers then queue on the busy
    timeout rather than reading the same counters.
    """
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=_connect_args(settings.database_url))
if settings.database_url.startswith("sqlite"):
    configure_sqlite(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # Create tables in dev/test without running Alembic
    if settings.env in {"dev", "test"}:
        Base.metadata.create_all(bind=engine)
