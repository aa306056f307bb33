"""
Fournisseur de transactions (SQLAlchemy).
- Database: handle process-scoped (engine + fabrique de sessions), créé par le lifespan
  puis injecté dans les vues via Depends(get_database).
- with_transaction(fn): begin -> fn(session) -> commit; rollback sur toute exception;
  la session est toujours fermée.
"""
import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.errors import DomainError, PersistenceError
from backend.models.db import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")

_database: Optional["Database"] = None


class Database:
    def __init__(self, url: str, echo: bool = False):
        kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # Base en mémoire: une seule connexion partagée, sinon chaque session voit une base vide
            if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self.url = url
        self.engine = create_engine(url, **kwargs)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    def with_transaction(self, fn: Callable[[Session], T]) -> T:
        """
        Exécute fn(session) dans une transaction unique.
        - Retour normal: commit.
        - DomainError: rollback puis propagation telle quelle (règle métier).
        - Erreur SQLAlchemy: rollback, log, puis PersistenceError (500).
        """
        session = self.session_factory()
        try:
            with session.begin():
                return fn(session)
        except DomainError:
            raise
        except SQLAlchemyError as e:
            logger.exception("database.with_transaction aborted")
            raise PersistenceError() from e
        finally:
            session.close()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("database.ping failed url=%s", self.engine.url.render_as_string(hide_password=True))
            return False


def init_database(url: str, echo: bool = False, create_tables: bool = True) -> Database:
    global _database
    _database = Database(url, echo=echo)
    if create_tables:
        _database.create_all()
    return _database


def get_database() -> Database:
    if _database is None:
        raise RuntimeError("Database non initialisée (init_database() doit être appelé au démarrage)")
    return _database


def close_database() -> None:
    global _database
    if _database is not None:
        _database.dispose()
        _database = None
