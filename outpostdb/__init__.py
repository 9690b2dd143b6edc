"""Relational store for alliances, corporations, members, capsuleers, skills, problems and outposts, with schema migrations."""

__version__ = "0.1.0"

__all__ = ["database", "entities", "environment", "migrator", "repository"]