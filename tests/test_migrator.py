import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

from outpostdb.migrator import Migration, MigrationError, Migrator, migrations

NAMES = [
    "m20240804_000001_create_member_table",
    "m20240804_000002_create_capsuleer_table",
    "m20240804_000003_create_skill_table",
    "m20250109_000001_create_alliance_table",
    "m20250109_000002_create_corporation_table",
    "m20250109_000003_alter_member_table",
    "m20250109_000004_alter_capsuleer_table",
    "m20250110_000001_create_problem_table",
    "m20250110_000002_create_outpost_table",
    "m20250114_000001_alter_problem_table",
]

TABLES = {"alliance", "capsuleer", "corporation", "member", "outpost", "problem", "skill"}


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'outposts.sqlite'}")
    yield engine
    engine.dispose()


def _columns(engine, table):
    return [column["name"] for column in inspect(engine).get_columns(table)]


def _referred(engine, table):
    return {key["referred_table"] for key in inspect(engine).get_foreign_keys(table)}


def test_migrations_are_in_order():
    assert [migration.name for migration in migrations()] == NAMES


def test_up_applies_everything(engine):
    migrator = Migrator(engine)
    assert migrator.up() == NAMES
    assert migrator.applied() == NAMES
    assert migrator.pending() == []
    assert set(inspect(engine).get_table_names()) == TABLES | {"seaql_migrations"}


def test_up_is_idempotent(engine):
    migrator = Migrator(engine)
    migrator.up()
    assert migrator.up() == []
    assert migrator.applied() == NAMES


def test_final_schema_columns(engine):
    Migrator(engine).up()
    assert "corporation_id" in _columns(engine, "member")
    assert "corporation_id" in _columns(engine, "capsuleer")
    assert "constraint" in _columns(engine, "problem")
    assert _columns(engine, "outpost") == [
        "id", "name", "system", "planets", "arrays", "capsuleer_id", "problem_id",
    ]


def test_final_schema_foreign_keys(engine):
    Migrator(engine).up()
    assert _referred(engine, "capsuleer") == {"member", "corporation"}
    assert _referred(engine, "member") == {"corporation"}
    assert _referred(engine, "problem") == {"member", "corporation", "alliance"}
    assert _referred(engine, "outpost") == {"capsuleer", "problem"}
    assert _referred(engine, "skill") == {"capsuleer"}


def test_up_with_steps(engine):
    migrator = Migrator(engine)
    assert migrator.up(3) == NAMES[:3]
    assert [migration.name for migration in migrator.pending()] == NAMES[3:]
    assert set(inspect(engine).get_table_names()) == {
        "member", "capsuleer", "skill", "seaql_migrations",
    }


def test_down_one_step_removes_constraint_column(engine):
    migrator = Migrator(engine)
    migrator.up()
    assert migrator.down(1) == NAMES[-1:]
    assert "constraint" not in _columns(engine, "problem")
    assert migrator.applied() == NAMES[:-1]
    assert _referred(engine, "problem") == {"member", "corporation", "alliance"}


def test_down_everything(engine):
    migrator = Migrator(engine)
    migrator.up()
    assert migrator.down() == list(reversed(NAMES))
    assert inspect(engine).get_table_names() == ["seaql_migrations"]
    assert migrator.applied() == []


def test_revert_member_alter_keeps_rows(engine):
    migrator = Migrator(engine)
    migrator.up(5)
    with engine.begin() as connection:
        connection.execute(text("INSERT INTO member (name) VALUES ('Member')"))
    migrator.up(1)
    assert "corporation_id" in _columns(engine, "member")
    migrator.down(1)
    assert _columns(engine, "member") == ["id", "name", "active"]
    assert _referred(engine, "capsuleer") == {"member"}
    with engine.connect() as connection:
        rows = connection.execute(text("SELECT name, active FROM member")).all()
    assert [(name, bool(active)) for name, active in rows] == [("Member", True)]


def test_active_defaults_to_true(engine):
    applied = Migrator(engine).up()
    assert applied == NAMES
    with engine.begin() as connection:
        connection.execute(text("INSERT INTO alliance (name) VALUES ('Alliance')"))
        active = connection.execute(text("SELECT active FROM alliance")).scalar_one()
    assert active == 1


def test_refresh_empties_tables(engine):
    migrator = Migrator(engine)
    migrator.up()
    with engine.begin() as connection:
        connection.execute(text("INSERT INTO alliance (name) VALUES ('Alliance')"))
    assert migrator.refresh() == NAMES
    with engine.connect() as connection:
        count = connection.execute(text("SELECT COUNT(*) FROM alliance")).scalar_one()
    assert count == 0


def test_missing_migration_is_reported(engine):
    Migrator(engine).up()
    partial = Migrator(engine, migrations()[:3])
    with pytest.raises(MigrationError):
        partial.applied()
    with pytest.raises(MigrationError):
        partial.up()


def test_negative_steps_rejected(engine):
    migrator = Migrator(engine)
    with pytest.raises(ValueError):
        migrator.up(-1)
    with pytest.raises(ValueError):
        migrator.down(-2)


def test_migration_up_and_down_on_connection(engine):
    first = migrations()[0]
    with engine.begin() as connection:
        first.up(connection)
    assert "member" in inspect(engine).get_table_names()
    with engine.begin() as connection:
        first.down(connection)
    assert "member" not in inspect(engine).get_table_names()


def test_create_without_if_not_exists_fails_twice(engine):
    Migrator(engine).up()
    skill = migrations()[2]
    with pytest.raises(OperationalError):
        with engine.begin() as connection:
            skill.up(connection)


def test_create_with_if_not_exists_tolerates_existing(engine):
    Migrator(engine).up()
    member = migrations()[0]
    with engine.begin() as connection:
        member.up(connection)
    assert "corporation_id" in _columns(engine, "member")


def test_custom_migration_list(engine):
    calls = []
    custom = Migration(
        "m_custom",
        lambda connection: calls.append("up"),
        lambda connection: calls.append("down"),
    )
    migrator = Migrator(engine, [custom])
    assert migrator.up() == ["m_custom"]
    assert migrator.down() == ["m_custom"]
    assert calls == ["up", "down"]