from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from wms.core.config import settings


def _enable_sqlite_write_locking(engine: Engine) -> None:
    # SQLite has no row locks; take the database write lock at BEGIN so that
    # concurrent units of work serialise instead of failing on lock upgrade.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, **overrides) -> Engine:
    is_sqlite = database_url.lower().startswith("sqlite")
    engine_kwargs: dict[str, object] = {
        # Detect and recover from stale pooled connections.
        "pool_pre_ping": True,
    }

    if is_sqlite:
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.sqlite_busy_timeout_seconds,
        }
    else:
        # Tune SQLAlchemy pool for networked databases (e.g. Postgres).
        engine_kwargs.update(
            {
                "pool_size": settings.db_pool_size,
                "max_overflow": settings.db_max_overflow,
                "pool_timeout": settings.db_pool_timeout_seconds,
                "pool_recycle": settings.db_pool_recycle_seconds,
            }
        )
    engine_kwargs.update(overrides)

    engine = create_engine(database_url, **engine_kwargs)
    if is_sqlite:
        _enable_sqlite_write_locking(engine)
    return engine


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
