"""Creating, finding and changing records of the outpost database."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from outpostdb.entities import (
    Alliance,
    Base,
    Capsuleer,
    Corporation,
    Member,
    Outpost,
    Problem,
    Skill,
)

_E = TypeVar("_E", bound=Base)


def _session(engine: Engine) -> Session:
    return Session(engine, expire_on_commit=False)


def _insert(engine: Engine, record: Base) -> int:
    with _session(engine) as session, session.begin():
        session.add(record)
        session.flush()
        return record.id


def _first_by_name(engine: Engine, entity: type[_E], name: str) -> Optional[_E]:
    with _session(engine) as session:
        statement = select(entity).where(entity.name == name).order_by(entity.id).limit(1)
        return session.scalars(statement).first()


def new_alliance(engine: Engine, name: str) -> int:
    """Store a new active alliance and return its id."""
    return _insert(engine, Alliance(name=name))


def new_corporation(engine: Engine, name: str, alliance_id: int) -> int:
    """Store a new active corporation of an alliance and return its id."""
    return _insert(engine, Corporation(name=name, alliance_id=alliance_id))


def new_member(engine: Engine, name: str, corporation_id: int) -> int:
    """Store a new active member of a corporation and return its id."""
    return _insert(engine, Member(name=name, corporation_id=corporation_id))


def new_capsuleer(engine: Engine, name: str, member_id: int, corporation_id: int) -> int:
    """Store a new active capsuleer and return its id."""
    return _insert(
        engine, Capsuleer(name=name, member_id=member_id, corporation_id=corporation_id)
    )


def new_skill(
    engine: Engine,
    name: str,
    basic: int,
    advanced: int,
    expert: int,
    capsuleer_id: int,
) -> int:
    """Store a skill of a capsuleer and return its id."""
    return _insert(
        engine,
        Skill(
            name=name,
            basic=basic,
            advanced=advanced,
            expert=expert,
            capsuleer_id=capsuleer_id,
        ),
    )


def new_problem(
    engine: Engine,
    name: str,
    constraint: bytes | Iterable[int],
    member_id: int,
    corporation_id: int,
    alliance_id: Optional[int] = None,
) -> int:
    """Store a new active problem and return its id."""
    return _insert(
        engine,
        Problem(
            name=name,
            constraint=bytes(constraint),
            member_id=member_id,
            corporation_id=corporation_id,
            alliance_id=alliance_id,
        ),
    )


def new_outpost(
    engine: Engine,
    name: str,
    system: str,
    planets: int,
    arrays: int,
    capsuleer_id: int,
    problem_id: Optional[int] = None,
) -> int:
    """Store an outpost of a capsuleer and return its id."""
    return _insert(
        engine,
        Outpost(
            name=name,
            system=system,
            planets=planets,
            arrays=arrays,
            capsuleer_id=capsuleer_id,
            problem_id=problem_id,
        ),
    )


def find_alliance_by_name(engine: Engine, name: str) -> Optional[Alliance]:
    """Return the first alliance with the given name, if any."""
    return _first_by_name(engine, Alliance, name)


def find_corporation_by_name(engine: Engine, name: str) -> Optional[Corporation]:
    """Return the first corporation with the given name, if any."""
    return _first_by_name(engine, Corporation, name)


def find_member_by_name(engine: Engine, name: str) -> Optional[Member]:
    """Return the first member with the given name, if any."""
    return _first_by_name(engine, Member, name)


def find_capsuleer_by_name(engine: Engine, name: str) -> Optional[Capsuleer]:
    """Return the first capsuleer with the given name, if any."""
    return _first_by_name(engine, Capsuleer, name)


def find_skill_by_name(engine: Engine, name: str) -> Optional[Skill]:
    """Return the first skill with the given name, if any."""
    return _first_by_name(engine, Skill, name)


def find_skill_by_id(engine: Engine, skill_id: int) -> Optional[Skill]:
    """Return the skill with the given id, if any."""
    with _session(engine) as session:
        return session.get(Skill, skill_id)


def find_problem_by_name(engine: Engine, name: str) -> Optional[Problem]:
    """Return the first problem with the given name, if any."""
    return _first_by_name(engine, Problem, name)


def find_outpost_by_name(engine: Engine, name: str) -> Optional[Outpost]:
    """Return the first outpost with the given name, if any."""
    return _first_by_name(engine, Outpost, name)


def find_member_capsuleers_by_name(
    engine: Engine, name: str
) -> list[tuple[Member, Optional[Capsuleer]]]:
    """Pair each member of the given name with each of its capsuleers.

    A member without capsuleers appears once, paired with ``None``.
    """
    statement = (
        select(Member, Capsuleer)
        .outerjoin(Capsuleer, Capsuleer.member_id == Member.id)
        .where(Member.name == name)
        .order_by(Member.id, Capsuleer.id)
    )
    with _session(engine) as session:
        return [(member, capsuleer) for member, capsuleer in session.execute(statement)]


def find_problem_outposts_by_name(
    engine: Engine, name: str
) -> list[tuple[Problem, Optional[Outpost]]]:
    """Pair each problem of the given name with each of its outposts.

    A problem without outposts appears once, paired with ``None``.
    """
    statement = (
        select(Problem, Outpost)
        .outerjoin(Outpost, Outpost.problem_id == Problem.id)
        .where(Problem.name == name)
        .order_by(Problem.id, Outpost.id)
    )
    with _session(engine) as session:
        return [(problem, outpost) for problem, outpost in session.execute(statement)]


def find_outposts_by_capsuleer(engine: Engine, capsuleer_id: int) -> list[Outpost]:
    """Return every outpost of a capsuleer, oldest first."""
    statement = (
        select(Outpost).where(Outpost.capsuleer_id == capsuleer_id).order_by(Outpost.id)
    )
    with _session(engine) as session:
        return list(session.scalars(statement))


def delete_outposts_by_name(engine: Engine, name: str) -> int:
    """Delete every outpost with the given name and return how many went."""
    with _session(engine) as session, session.begin():
        result = session.execute(delete(Outpost).where(Outpost.name == name))
        return result.rowcount


def set_outpost_problem(
    engine: Engine, outpost_id: int, problem_id: Optional[int]
) -> Outpost:
    """Attach an outpost to a problem, or detach it with ``None``.

    Raises ``LookupError`` when no outpost has the given id.
    """
    with _session(engine) as session, session.begin():
        outpost = session.get(Outpost, outpost_id)
        if outpost is None:
            raise LookupError(f"no outpost with id {outpost_id}")
        outpost.problem_id = problem_id
        session.flush()
        return outpost