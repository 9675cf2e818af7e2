from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError
from virtual_shop.core.errors import ConnectionFailure

class Base(DeclarativeBase): pass

def _enable_sqlite_fks(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute('PRAGMA foreign_keys=ON')
    cur.close()

class Database:
    """Owns the engine (and its pool) and hands out sessions.

    Built once per process by ``create_app`` and disposed on shutdown.
    """

    def __init__(self, dsn: str, **engine_kwargs):
        self.engine = create_engine(dsn, pool_pre_ping=True, **engine_kwargs)
        if self.engine.dialect.name == 'sqlite':
            event.listen(self.engine, 'connect', _enable_sqlite_fks)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

    def session(self) -> Session:
        return self.SessionLocal()

    def ping(self, db: Session) -> None:
        try:
            db.execute(text('SELECT 1'))
        except OperationalError as exc:
            db.rollback()
            raise ConnectionFailure() from exc

    def create_all(self) -> None:
        import virtual_shop.db.models  # noqa
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
