"""Opening the outpost database on its server and bringing its schema up to date."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError

from outpostdb.environment import Configuration
from outpostdb.migrator import Migrator


class Backend(Enum):
    """The kinds of database server the application can run on."""

    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"


_BACKENDS = {
    "mysql": Backend.MYSQL,
    "mariadb": Backend.MYSQL,
    "postgres": Backend.POSTGRES,
    "postgresql": Backend.POSTGRES,
    "sqlite": Backend.SQLITE,
}


def backend_of(url: str) -> Backend:
    """Return the backend a database URL points at."""
    try:
        name = make_url(url).get_backend_name()
    except ArgumentError as error:
        raise ValueError(f"invalid database url: {url!r}") from error
    try:
        return _BACKENDS[name]
    except KeyError:
        raise ValueError(f"unsupported database backend: {name!r}") from None


def _engine(url: str) -> Engine:
    parsed = make_url(url)
    if parsed.drivername == "postgres":
        parsed = parsed.set(drivername="postgresql")
    return create_engine(parsed)


def _quote(engine: Engine, name: str) -> str:
    return engine.dialect.identifier_preparer.quote_identifier(name)


def database_exists(engine: Engine, database_name: str) -> bool:
    """Tell whether a PostgreSQL server holds a database of the given name."""
    with engine.connect() as connection:
        row = connection.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :name"),
            {"name": database_name},
        ).first()
    return row is not None


def create_database(engine: Engine, database_name: str) -> None:
    """Create a database of the given name on a PostgreSQL server."""
    statement = f"CREATE DATABASE {_quote(engine, database_name)}"
    with engine.execution_options(isolation_level="AUTOCOMMIT").connect() as connection:
        connection.exec_driver_sql(statement)


def persistent_database(engine: Engine, database_name: str) -> bool:
    """Make sure the database exists, keeping it if it does.

    Returns whether the database had to be created.
    """
    if database_exists(engine, database_name):
        print(f"Database Exists: {database_name}")
        return False
    create_database(engine, database_name)
    return True


def _create_mysql_database(engine: Engine, database_name: str) -> None:
    statement = f"CREATE DATABASE IF NOT EXISTS {_quote(engine, database_name)}"
    with engine.execution_options(isolation_level="AUTOCOMMIT").connect() as connection:
        connection.exec_driver_sql(statement)


def _database_url(config: Configuration) -> str:
    return f"{config.url}/{config.database}"


def open_postgres(config: Configuration) -> Engine:
    """Ensure the configured database exists on the PostgreSQL server and open it."""
    server = _engine(config.url)
    try:
        persistent_database(server, config.database)
    finally:
        server.dispose()
    return _engine(_database_url(config))


def open_mysql(config: Configuration) -> Engine:
    """Ensure the configured database exists on the MySQL server and open it."""
    server = _engine(config.url)
    try:
        _create_mysql_database(server, config.database)
    finally:
        server.dispose()
    return _engine(_database_url(config))


def revision(config: Configuration) -> Engine:
    """Open the configured database and apply every pending migration to it."""
    backend = backend_of(config.url)
    if backend is Backend.MYSQL:
        engine = open_mysql(config)
    elif backend is Backend.POSTGRES:
        engine = open_postgres(config)
    else:
        engine = _engine(config.url)
    Migrator(engine).up()
    return engine