"""Mapped records of the outpost database: alliances down to outposts."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, LargeBinary, String, true
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative base shared by every entity."""


def _active_column() -> Mapped[bool]:
    return mapped_column(default=True, server_default=true())


class Alliance(Base):
    """A group of corporations."""

    __tablename__ = "alliance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    active: Mapped[bool] = _active_column()

    corporations: Mapped[List[Corporation]] = relationship(back_populates="alliance")

    def deactivate(self) -> None:
        """Mark the alliance as no longer active."""
        self.active = False

    def __repr__(self) -> str:
        return f"Alliance(id={self.id!r}, name={self.name!r}, active={self.active!r})"


class Corporation(Base):
    """A corporation belonging to an alliance."""

    __tablename__ = "corporation"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    active: Mapped[bool] = _active_column()
    alliance_id: Mapped[int] = mapped_column(ForeignKey("alliance.id"))

    alliance: Mapped[Alliance] = relationship(back_populates="corporations")
    members: Mapped[List[Member]] = relationship(back_populates="corporation")
    capsuleers: Mapped[List[Capsuleer]] = relationship(back_populates="corporation")

    def deactivate(self) -> None:
        """Mark the corporation as no longer active."""
        self.active = False

    def __repr__(self) -> str:
        return (
            f"Corporation(id={self.id!r}, name={self.name!r}, active={self.active!r}, "
            f"alliance_id={self.alliance_id!r})"
        )


class Member(Base):
    """A member of a corporation."""

    __tablename__ = "member"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    active: Mapped[bool] = _active_column()
    corporation_id: Mapped[int] = mapped_column(ForeignKey("corporation.id"))

    corporation: Mapped[Corporation] = relationship(back_populates="members")
    capsuleers: Mapped[List[Capsuleer]] = relationship(
        back_populates="member", order_by="Capsuleer.id"
    )

    def deactivate(self) -> None:
        """Mark the member as no longer active."""
        self.active = False

    def __repr__(self) -> str:
        return (
            f"Member(id={self.id!r}, name={self.name!r}, active={self.active!r}, "
            f"corporation_id={self.corporation_id!r})"
        )


class Capsuleer(Base):
    """A pilot owned by a member and flying for a corporation."""

    __tablename__ = "capsuleer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    active: Mapped[bool] = _active_column()
    member_id: Mapped[int] = mapped_column(ForeignKey("member.id"))
    corporation_id: Mapped[int] = mapped_column(ForeignKey("corporation.id"))

    member: Mapped[Member] = relationship(back_populates="capsuleers")
    corporation: Mapped[Corporation] = relationship(back_populates="capsuleers")
    skills: Mapped[List[Skill]] = relationship(back_populates="capsuleer", order_by="Skill.id")
    outposts: Mapped[List[Outpost]] = relationship(
        back_populates="capsuleer", order_by="Outpost.id"
    )

    def deactivate(self) -> None:
        """Mark the capsuleer as no longer active."""
        self.active = False

    def __repr__(self) -> str:
        return (
            f"Capsuleer(id={self.id!r}, name={self.name!r}, active={self.active!r}, "
            f"member_id={self.member_id!r}, corporation_id={self.corporation_id!r})"
        )


class Skill(Base):
    """Training levels of one skill of a capsuleer."""

    __tablename__ = "skill"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    basic: Mapped[int] = mapped_column(Integer)
    advanced: Mapped[int] = mapped_column(Integer)
    expert: Mapped[int] = mapped_column(Integer)
    capsuleer_id: Mapped[int] = mapped_column(ForeignKey("capsuleer.id"))

    capsuleer: Mapped[Capsuleer] = relationship(back_populates="skills")

    def reset(self) -> None:
        """Set every training level back to zero."""
        self.basic = 0
        self.advanced = 0
        self.expert = 0

    def __repr__(self) -> str:
        return (
            f"Skill(id={self.id!r}, name={self.name!r}, basic={self.basic!r}, "
            f"advanced={self.advanced!r}, expert={self.expert!r}, "
            f"capsuleer_id={self.capsuleer_id!r})"
        )


class Problem(Base):
    """A planning problem raised by a member, grouping outposts."""

    __tablename__ = "problem"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    constraint: Mapped[bytes] = mapped_column("constraint", LargeBinary)
    active: Mapped[bool] = _active_column()
    member_id: Mapped[int] = mapped_column(ForeignKey("member.id"))
    corporation_id: Mapped[int] = mapped_column(ForeignKey("corporation.id"))
    alliance_id: Mapped[Optional[int]] = mapped_column(ForeignKey("alliance.id"))

    member: Mapped[Member] = relationship()
    corporation: Mapped[Corporation] = relationship()
    alliance: Mapped[Optional[Alliance]] = relationship()
    outposts: Mapped[List[Outpost]] = relationship(
        back_populates="problem", order_by="Outpost.id"
    )

    def deactivate(self) -> None:
        """Mark the problem as no longer active."""
        self.active = False

    def __repr__(self) -> str:
        return (
            f"Problem(id={self.id!r}, name={self.name!r}, active={self.active!r}, "
            f"member_id={self.member_id!r}, corporation_id={self.corporation_id!r}, "
            f"alliance_id={self.alliance_id!r})"
        )


class Outpost(Base):
    """Planets and arrays a capsuleer runs in one system."""

    __tablename__ = "outpost"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    system: Mapped[str] = mapped_column(String(255))
    planets: Mapped[int] = mapped_column(Integer)
    arrays: Mapped[int] = mapped_column(Integer)
    capsuleer_id: Mapped[int] = mapped_column(ForeignKey("capsuleer.id"))
    problem_id: Mapped[Optional[int]] = mapped_column(ForeignKey("problem.id"))

    capsuleer: Mapped[Capsuleer] = relationship(back_populates="outposts")
    problem: Mapped[Optional[Problem]] = relationship(back_populates="outposts")

    def reset(self) -> None:
        """Set the planet and array counts back to zero."""
        self.planets = 0
        self.arrays = 0

    def __repr__(self) -> str:
        return (
            f"Outpost(id={self.id!r}, name={self.name!r}, system={self.system!r}, "
            f"planets={self.planets!r}, arrays={self.arrays!r}, "
            f"capsuleer_id={self.capsuleer_id!r}, problem_id={self.problem_id!r})"
        )