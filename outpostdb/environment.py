"""Selection of the environment whose configuration the application runs with."""

from __future__ import annotations

import os
from dataclasses import dataclass

ENVIRONMENT_VARIABLE = "APP_ENVIRONMENT"
ENVIRONMENTS = ("prod", "dev", "local", "test")


@dataclass
class Configuration:
    """Where the database server lives and which database on it to use."""

    url: str
    database: str


class InvalidEnvironmentError(ValueError):
    """Raised when the requested environment is not one that is known."""

    def __init__(self, environment: str) -> None:
        super().__init__(f"invalid environment: {environment!r}")
        self.environment = environment


def resolve_environment(environment: str) -> str:
    """Return the environment to run in.

    The ``APP_ENVIRONMENT`` variable, when set, takes precedence over the
    given name. The result must be one of ``prod``, ``dev``, ``local`` or
    ``test``.
    """
    chosen = os.environ.get(ENVIRONMENT_VARIABLE, environment)
    if chosen not in ENVIRONMENTS:
        raise InvalidEnvironmentError(chosen)
    return chosen