import asyncio
from contextlib import asynccontextmanager
from enum import Enum, auto
from pathlib import Path
from typing import AsyncGenerator, Optional

from alembic import command
from alembic.config import Config
from loguru import logger
from sqlalchemy import event, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.engine.interfaces import DBAPIConnection
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
    AsyncEngine,
    async_scoped_session,
)
from sqlalchemy.pool import ConnectionPoolEntry

from meta_catalog.config import CatalogConfig
from meta_catalog.models import Base, Directory, ROOT_PATH

ALEMBIC_DIR = Path(__file__).parent / "alembic"

# execution option marking a transaction that will write
WRITE_OPTION = "sqlite_write"


class DatabaseType(Enum):
    """Types of supported databases."""

    MEMORY = auto()
    FILESYSTEM = auto()

    @classmethod
    def get_db_url(cls, db_path: Optional[Path], db_type: "DatabaseType") -> str:
        """Get SQLAlchemy URL for database path."""
        if db_type == cls.MEMORY:
            logger.info("Using in-memory SQLite database")
            return "sqlite+aiosqlite://"

        return f"sqlite+aiosqlite:///{db_path}"


def configure_sqlite_connection(engine: AsyncEngine) -> None:
    """Enable foreign keys, WAL and explicit transactions on every new connection.

    The sqlite3 driver's own transaction handling is switched off. Connections
    carrying the ``sqlite_write`` execution option open their transaction with
    BEGIN IMMEDIATE, which serializes writers. All other transactions use a
    deferred BEGIN and only take a shared lock, so readers never wait on each
    other, and with WAL they do not wait on a writer either.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection: DBAPIConnection, connection_record: ConnectionPoolEntry):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        # in-memory databases answer "memory" and keep their journal
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def on_begin(conn):
        if conn.get_execution_options().get(WRITE_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def get_scoped_session_factory(
    session_maker: async_sessionmaker[AsyncSession],
) -> async_scoped_session:
    """Create a scoped session factory scoped to current task."""
    return async_scoped_session(session_maker, scopefunc=asyncio.current_task)


@asynccontextmanager
async def scoped_session(
    session_maker: async_sessionmaker[AsyncSession],
    write: bool = False,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a scoped session with proper lifecycle management.

    The session is committed when the block exits normally and rolled back
    when it raises, so each block is a single transaction.

    Args:
        session_maker: Session maker to create scoped sessions from
        write: Open the transaction with BEGIN IMMEDIATE

    Raises:
        DatabaseBusyError: If the database stayed locked past the busy timeout
    """
    factory = get_scoped_session_factory(session_maker)
    session = factory()
    try:
        if write:
            await session.connection(execution_options={WRITE_OPTION: True})
        yield session
        await session.commit()
    except Exception as e:
        await session.rollback()
        if isinstance(e, OperationalError) and "database is locked" in str(e):
            from meta_catalog.services.exceptions import DatabaseBusyError

            raise DatabaseBusyError(f"Catalog database is busy: {e.orig}") from e
        raise
    finally:
        await session.close()
        await factory.remove()


async def seed_root_directory(session: AsyncSession) -> int:
    """Insert the root directory if missing and return its id."""
    await session.execute(
        insert(Directory).values(path=ROOT_PATH).on_conflict_do_nothing(index_elements=["path"])
    )
    result = await session.execute(select(Directory.id).where(Directory.path == ROOT_PATH))
    return result.scalar_one()


async def init_db(session: AsyncSession):
    """Initialize database with required tables and the root directory."""
    conn = await session.connection()
    await conn.run_sync(Base.metadata.create_all)
    root_id = await seed_root_directory(session)
    await session.commit()
    logger.debug(f"Database initialized, root directory id: {root_id}")


def get_alembic_config(db_path: Path) -> Config:
    """Build an alembic config for a database file without an ini file."""
    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    return alembic_cfg


def run_migrations(db_path: Path, revision: str = "head") -> None:
    """Upgrade a database file to ``revision``, creating it if needed."""
    logger.info(f"Running database migrations for {db_path}...")
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        command.upgrade(get_alembic_config(db_path), revision)
        logger.info("Migrations completed successfully")
    except Exception as e:
        logger.error(f"Error running migrations: {e}")
        raise


@asynccontextmanager
async def engine_session_factory(
    db_path: Optional[Path],
    db_type: DatabaseType = DatabaseType.FILESYSTEM,
    init: bool = True,
    app_config: Optional[CatalogConfig] = None,
) -> AsyncGenerator[tuple[AsyncEngine, async_sessionmaker[AsyncSession]], None]:
    """Create engine and session factory.

    With ``init`` a file database is migrated to the latest revision and an
    in-memory database is created from the models; both get the root row.
    """
    busy_timeout = app_config.busy_timeout if app_config else 30.0

    if init and db_type == DatabaseType.FILESYSTEM:
        # alembic drives its own (sync) engine
        await asyncio.to_thread(run_migrations, db_path)

    db_url = DatabaseType.get_db_url(db_path, db_type)
    logger.debug(f"Creating engine for db_url: {db_url}")
    engine = create_async_engine(
        db_url, connect_args={"check_same_thread": False, "timeout": busy_timeout}
    )
    configure_sqlite_connection(engine)
    try:
        factory = async_sessionmaker(engine, expire_on_commit=False)

        if init and db_type == DatabaseType.MEMORY:
            logger.debug("Initializing database...")
            async with scoped_session(factory, write=True) as db_session:
                await init_db(db_session)

        yield engine, factory
    finally:
        await engine.dispose()
