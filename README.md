# outpostdb

`outpostdb` keeps an organisation's hierarchy and its holdings in a
relational database:

- **alliances**, made up of **corporations**;
- **members** of a corporation, and the **capsuleers** they fly;
- **skills** trained by a capsuleer (basic, advanced and expert levels);
- **problems** raised by a member on behalf of a corporation (and optionally
  an alliance), each carrying a binary constraint blob;
- **outposts** run by a capsuleer in a star system, with a planet count, an
  array count and an optional problem they are attached to.

It is built on SQLAlchemy 2 and works with SQLite, PostgreSQL and MySQL.

## Installation

The package depends only on SQLAlchemy. If you use PostgreSQL or MySQL, you
need to install a driver for that server yourself.

## Configuration

A `Configuration` (in `outpostdb.environment`) holds the server URL and the
name of the database:

```python
from outpostdb.environment import Configuration

config = Configuration(url="sqlite:///outposts.db", database="outposts")
```

`resolve_environment(name)` returns the name of the environment to run in.
When the `APP_ENVIRONMENT` environment variable is set, it takes precedence
over the name given. The result must be one of `prod`, `dev`, `local` or
`test`. Any other name raises `InvalidEnvironmentError`, which is a
`ValueError`.

## Opening a database

`outpostdb.database.revision(config)` opens the configured database, applies
every pending migration and returns a SQLAlchemy `Engine`:

- for PostgreSQL, `open_postgres` creates the named database on the server if
  it does not exist yet. If it does exist, it prints `Database Exists: <name>`.
  It then connects to `<url>/<database>`;
- for MySQL, `open_mysql` issues `CREATE DATABASE IF NOT EXISTS` for the
  named database and then connects to `<url>/<database>`;
- for SQLite, the URL is used as it is and `database` is ignored.

```python
from outpostdb.database import revision

engine = revision(config)
```

`backend_of(url)` returns the `Backend` (`MYSQL`, `POSTGRES` or `SQLITE`)
that a URL points at. It raises `ValueError` for a malformed URL or for any
other backend.

Three helpers manage PostgreSQL databases directly:

- `database_exists(engine, name)` tells whether the database exists;
- `create_database(engine, name)` creates it;
- `persistent_database(engine, name)` creates it only when it is missing, and
  returns whether it had to.

## Migrations

`outpostdb.migrator.migrations()` lists the schema migrations as `Migration`
objects, oldest first. Each migration has a `name` and `up(connection)` /
`down(connection)` methods.

A `Migrator` runs the migrations against an engine. It records the ones
applied in a `seaql_migrations` table:

```python
from outpostdb.migrator import Migrator, migrations

migrator = Migrator(engine, migrations())
migrator.up(None)       # apply every pending migration; returns their names
migrator.applied()      # names of the applied migrations
migrator.pending()      # Migration objects still to apply, in order
migrator.down(1)        # revert the most recent one; returns its name
migrator.refresh()      # revert everything, then apply it all again
```

- `up` and `down` take a number of steps, or `None` for all of them. A
  negative number raises `ValueError`.
- `applied` raises `MigrationError` when the database records a migration
  that the migrator does not know.
- On SQLite, the migrations that drop a column rebuild the table instead.

## Working with records

The functions in `outpostdb.repository` each open their own session on the
engine. The `new_*` functions return the id of the new row.

```python
from outpostdb.repository import (
    new_alliance, new_corporation, new_member, new_capsuleer,
    new_skill, new_problem, new_outpost,
    find_outpost_by_name, find_problem_outposts_by_name, set_outpost_problem,
)

alliance_id = new_alliance(engine, "Alliance")
corporation_id = new_corporation(engine, "Corporation", alliance_id)
member_id = new_member(engine, "Member", corporation_id)
capsuleer_id = new_capsuleer(engine, "Capsuleer", member_id, corporation_id)

new_skill(engine, "Planetology", 5, 5, 4, capsuleer_id)

problem_id = new_problem(engine, "Problem", b"", member_id, corporation_id, None)
outpost_id = new_outpost(engine, "Outpost", "System", 12, 26, capsuleer_id, None)

set_outpost_problem(engine, outpost_id, problem_id)

outpost = find_outpost_by_name(engine, "Outpost")
for problem, attached in find_problem_outposts_by_name(engine, "Problem"):
    print(problem.name, attached.name if attached else None)
```

The following lookups return the first match by id, or `None`:

- `find_alliance_by_name`
- `find_corporation_by_name`
- `find_member_by_name`
- `find_capsuleer_by_name`
- `find_skill_by_name`
- `find_skill_by_id`
- `find_problem_by_name`

Other functions:

- `find_member_capsuleers_by_name` and `find_problem_outposts_by_name` return
  `(parent, child)` pairs. A parent without children appears once, paired
  with `None`.
- `find_outposts_by_capsuleer` lists a capsuleer's outposts.
- `delete_outposts_by_name` removes every outpost with a given name and
  returns the count.
- `set_outpost_problem(engine, outpost_id, problem_id)` attaches an outpost to
  a problem, or detaches it when given `None`. It returns the updated
  outpost, and raises `LookupError` for an unknown outpost id.

## Mapped classes

The mapped classes in `outpostdb.entities` are `Alliance`, `Corporation`,
`Member`, `Capsuleer`, `Skill`, `Problem` and `Outpost`. They all derive from
`Base`.

- `deactivate()` clears the `active` flag on `Alliance`, `Corporation`,
  `Member`, `Capsuleer` and `Problem`.
- `Skill.reset()` sets all three levels to zero.
- `Outpost.reset()` sets planets and arrays to zero.

## What it does not do

- There is no command-line tool and no server. The package is a library to
  call from your own code.
- `resolve_environment` only checks and returns an environment name. It does
  not load a `Configuration` for that environment, so you build the
  `Configuration` yourself.