"""Schema migrations for the outpost database and the runner that applies them."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKeyConstraint,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    select,
    text,
    true,
)
from sqlalchemy.engine import Connection, Engine

MIGRATION_TABLE = "seaql_migrations"

TableBuilder = Callable[[MetaData, str], Table]


class MigrationError(RuntimeError):
    """Raised when the recorded migrations do not match the known ones."""


@dataclass(frozen=True)
class Migration:
    """A named, reversible change to the schema."""

    name: str
    apply: Callable[[Connection], None]
    revert: Callable[[Connection], None]

    def up(self, connection: Connection) -> None:
        """Apply the change on the given connection."""
        self.apply(connection)

    def down(self, connection: Connection) -> None:
        """Undo the change on the given connection."""
        self.revert(connection)


def _quote(connection: Connection, name: str) -> str:
    return connection.dialect.identifier_preparer.quote(name)


def _reference(metadata: MetaData, name: str) -> Table:
    existing = metadata.tables.get(name)
    if existing is not None:
        return existing
    return Table(name, metadata, Column("id", Integer, primary_key=True))


def _id() -> Column:
    return Column("id", Integer, primary_key=True, autoincrement=True)


def _name() -> Column:
    return Column("name", String(255), nullable=False)


def _active() -> Column:
    return Column("active", Boolean, nullable=False, server_default=true())


def _member_table(metadata: MetaData, name: str = "member") -> Table:
    return Table(name, metadata, _id(), _name(), _active())


def _capsuleer_table(metadata: MetaData, name: str = "capsuleer") -> Table:
    _reference(metadata, "member")
    return Table(
        name,
        metadata,
        _id(),
        _name(),
        _active(),
        Column("member_id", Integer, nullable=False),
        ForeignKeyConstraint(["member_id"], ["member.id"], name="fk-member-capsuleer_id"),
    )


def _skill_table(metadata: MetaData, name: str = "skill") -> Table:
    _reference(metadata, "capsuleer")
    return Table(
        name,
        metadata,
        _id(),
        _name(),
        Column("basic", Integer, nullable=False),
        Column("advanced", Integer, nullable=False),
        Column("expert", Integer, nullable=False),
        Column("capsuleer_id", Integer, nullable=False),
        ForeignKeyConstraint(["capsuleer_id"], ["capsuleer.id"], name="fk-capsuler-skill_id"),
    )


def _alliance_table(metadata: MetaData, name: str = "alliance") -> Table:
    return Table(name, metadata, _id(), _name(), _active())


def _corporation_table(metadata: MetaData, name: str = "corporation") -> Table:
    _reference(metadata, "alliance")
    return Table(
        name,
        metadata,
        _id(),
        _name(),
        _active(),
        Column("alliance_id", Integer, nullable=False),
        ForeignKeyConstraint(
            ["alliance_id"], ["alliance.id"], name="fk-alliance-corporation_id"
        ),
    )


def _problem_table(metadata: MetaData, name: str = "problem") -> Table:
    for target in ("member", "corporation", "alliance"):
        _reference(metadata, target)
    return Table(
        name,
        metadata,
        _id(),
        _name(),
        _active(),
        Column("member_id", Integer),
        Column("corporation_id", Integer),
        Column("alliance_id", Integer),
        ForeignKeyConstraint(["member_id"], ["member.id"], name="fk-problem-member_id"),
        ForeignKeyConstraint(
            ["corporation_id"], ["corporation.id"], name="fk-problem-corporation_id"
        ),
        ForeignKeyConstraint(["alliance_id"], ["alliance.id"], name="fk-problem-alliance_id"),
    )


def _outpost_table(metadata: MetaData, name: str = "outpost") -> Table:
    _reference(metadata, "capsuleer")
    _reference(metadata, "problem")
    return Table(
        name,
        metadata,
        _id(),
        _name(),
        Column("system", String(255), nullable=False),
        Column("planets", Integer, nullable=False),
        Column("arrays", Integer, nullable=False),
        Column("capsuleer_id", Integer, nullable=False),
        ForeignKeyConstraint(["capsuleer_id"], ["capsuleer.id"], name="fk-capsuler-outpost_id"),
        Column("problem_id", Integer),
        ForeignKeyConstraint(["problem_id"], ["problem.id"], name="fk-problem-outpost_id"),
    )


def _create(builder: TableBuilder, if_not_exists: bool) -> Callable[[Connection], None]:
    def apply(connection: Connection) -> None:
        builder(MetaData()).create(connection, checkfirst=if_not_exists)

    return apply


def _drop(name: str) -> Callable[[Connection], None]:
    def revert(connection: Connection) -> None:
        Table(name, MetaData()).drop(connection)

    return revert


def _rebuild_sqlite(connection: Connection, name: str, builder: TableBuilder) -> None:
    """Replace a SQLite table by one built from ``builder``, keeping shared columns."""
    staging = builder(MetaData(), f"_new_{name}")
    staging.create(connection)
    columns = ", ".join(_quote(connection, column.name) for column in staging.columns)
    old, new = _quote(connection, name), _quote(connection, staging.name)
    connection.execute(text(f"INSERT INTO {new} ({columns}) SELECT {columns} FROM {old}"))
    connection.execute(text(f"DROP TABLE {old}"))
    connection.execute(text(f"ALTER TABLE {new} RENAME TO {old}"))


def _add_reference(
    table: str, column: str, constraint: str, target: str
) -> Callable[[Connection], None]:
    def apply(connection: Connection) -> None:
        q = _quote(connection, table)
        col = _quote(connection, column)
        fk = _quote(connection, constraint)
        references = f"REFERENCES {_quote(connection, target)} ({_quote(connection, 'id')})"
        if connection.dialect.name == "sqlite":
            connection.execute(
                text(f"ALTER TABLE {q} ADD COLUMN {col} INTEGER CONSTRAINT {fk} {references}")
            )
        else:
            connection.execute(text(f"ALTER TABLE {q} ADD COLUMN {col} INTEGER"))
            connection.execute(
                text(f"ALTER TABLE {q} ADD CONSTRAINT {fk} FOREIGN KEY ({col}) {references}")
            )

    return apply


def _drop_reference(
    table: str, column: str, constraint: str, previous: TableBuilder
) -> Callable[[Connection], None]:
    def revert(connection: Connection) -> None:
        dialect = connection.dialect.name
        if dialect == "sqlite":
            _rebuild_sqlite(connection, table, previous)
            return
        q = _quote(connection, table)
        drop = "DROP FOREIGN KEY" if dialect in ("mysql", "mariadb") else "DROP CONSTRAINT"
        connection.execute(text(f"ALTER TABLE {q} {drop} {_quote(connection, constraint)}"))
        connection.execute(text(f"ALTER TABLE {q} DROP COLUMN {_quote(connection, column)}"))

    return revert


def _add_binary(table: str, column: str) -> Callable[[Connection], None]:
    def apply(connection: Connection) -> None:
        kind = LargeBinary().compile(dialect=connection.dialect)
        connection.execute(
            text(
                f"ALTER TABLE {_quote(connection, table)} "
                f"ADD COLUMN {_quote(connection, column)} {kind}"
            )
        )

    return apply


def _drop_column(table: str, column: str, previous: TableBuilder) -> Callable[[Connection], None]:
    def revert(connection: Connection) -> None:
        if connection.dialect.name == "sqlite":
            _rebuild_sqlite(connection, table, previous)
            return
        connection.execute(
            text(
                f"ALTER TABLE {_quote(connection, table)} "
                f"DROP COLUMN {_quote(connection, column)}"
            )
        )

    return revert


def migrations() -> list[Migration]:
    """Return every migration of the schema, oldest first."""
    return [
        Migration(
            "m20240804_000001_create_member_table",
            _create(_member_table, True),
            _drop("member"),
        ),
        Migration(
            "m20240804_000002_create_capsuleer_table",
            _create(_capsuleer_table, True),
            _drop("capsuleer"),
        ),
        Migration(
            "m20240804_000003_create_skill_table",
            _create(_skill_table, False),
            _drop("skill"),
        ),
        Migration(
            "m20250109_000001_create_alliance_table",
            _create(_alliance_table, True),
            _drop("alliance"),
        ),
        Migration(
            "m20250109_000002_create_corporation_table",
            _create(_corporation_table, True),
            _drop("corporation"),
        ),
        Migration(
            "m20250109_000003_alter_member_table",
            _add_reference("member", "corporation_id", "fk-corporation-member_id", "corporation"),
            _drop_reference("member", "corporation_id", "fk-corporation-member_id", _member_table),
        ),
        Migration(
            "m20250109_000004_alter_capsuleer_table",
            _add_reference(
                "capsuleer", "corporation_id", "fk-corporation-capsuleer_id", "corporation"
            ),
            _drop_reference(
                "capsuleer", "corporation_id", "fk-corporation-capsuleer_id", _capsuleer_table
            ),
        ),
        Migration(
            "m20250110_000001_create_problem_table",
            _create(_problem_table, False),
            _drop("problem"),
        ),
        Migration(
            "m20250110_000002_create_outpost_table",
            _create(_outpost_table, True),
            _drop("outpost"),
        ),
        Migration(
            "m20250114_000001_alter_problem_table",
            _add_binary("problem", "constraint"),
            _drop_column("problem", "constraint", _problem_table),
        ),
    ]


_default_migrations = migrations

_tracking = MetaData()
_versions = Table(
    MIGRATION_TABLE,
    _tracking,
    Column("version", String(255), primary_key=True),
    Column("applied_at", BigInteger, nullable=False),
)


def _check_steps(steps: int | None) -> None:
    if steps is not None and steps < 0:
        raise ValueError(f"steps must not be negative, got {steps}")


class Migrator:
    """Applies and reverts migrations, recording them in the database."""

    def __init__(self, engine: Engine, migrations: Iterable[Migration] | None = None) -> None:
        self.engine = engine
        self.migrations = list(migrations) if migrations is not None else _default_migrations()

    def applied(self) -> list[str]:
        """Names of the migrations recorded as applied, oldest first."""
        with self.engine.begin() as connection:
            _versions.create(connection, checkfirst=True)
            names = list(
                connection.execute(
                    select(_versions.c.version).order_by(_versions.c.version)
                ).scalars()
            )
        known = {migration.name for migration in self.migrations}
        missing = [name for name in names if name not in known]
        if missing:
            raise MigrationError(
                "applied migrations are missing from the migration list: " + ", ".join(missing)
            )
        return names

    def pending(self) -> list[Migration]:
        """Migrations not yet applied, in the order they will run."""
        done = set(self.applied())
        return [migration for migration in self.migrations if migration.name not in done]

    def up(self, steps: int | None = None) -> list[str]:
        """Apply pending migrations, all of them or the first ``steps``."""
        _check_steps(steps)
        todo = self.pending()
        if steps is not None:
            todo = todo[:steps]
        done = []
        for migration in todo:
            with self.engine.begin() as connection:
                migration.up(connection)
                connection.execute(
                    _versions.insert().values(
                        version=migration.name, applied_at=int(time.time())
                    )
                )
            done.append(migration.name)
        return done

    def down(self, steps: int | None = None) -> list[str]:
        """Revert applied migrations, newest first, all of them or ``steps``."""
        _check_steps(steps)
        by_name = {migration.name: migration for migration in self.migrations}
        todo = list(reversed(self.applied()))
        if steps is not None:
            todo = todo[:steps]
        done = []
        for name in todo:
            with self.engine.begin() as connection:
                by_name[name].down(connection)
                connection.execute(_versions.delete().where(_versions.c.version == name))
            done.append(name)
        return done

    def refresh(self) -> list[str]:
        """Revert every applied migration, then apply them all again."""
        self.down()
        return self.up()