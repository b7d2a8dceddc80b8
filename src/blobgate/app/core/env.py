from __future__ import annotations

import os
import warnings
from enum import StrEnum
from functools import cache
from typing import NamedTuple


class Env(StrEnum):
    LOCAL = "local"
    DEV   = "dev"
    TEST  = "test"
    PROD  = "prod"


SYNONYMS: dict[str, Env] = {
    "development": Env.DEV,
    "staging": Env.DEV,
    "testing": Env.TEST,
    "ci": Env.TEST,
    "production": Env.PROD,
}


def normalize_env(raw: str | None) -> Env | None:
    if not raw:
        return None
    val = raw.strip().lower()
    if val in (e.value for e in Env):
        return Env(val)
    return SYNONYMS.get(val)


@cache
def get_env() -> Env:
    """
    Resolve the deployment environment once.

    Precedence:
      1) BLOBGATE_ENV
      2) APP_ENV
      3) "local"

    Unknown values fall back to LOCAL with a one-time warning.
    """
    raw = os.getenv("BLOBGATE_ENV") or os.getenv("APP_ENV")
    env = normalize_env(raw)
    if env is None:
        if raw:
            warnings.warn(
                f"Unrecognized environment '{raw}', defaulting to 'local'.",
                RuntimeWarning,
                stacklevel=2,
            )
        env = Env.LOCAL
    return env


class EnvFlags(NamedTuple):
    env: Env
    is_local: bool
    is_dev: bool
    is_test: bool
    is_prod: bool


def get_env_flags(env: Env | None = None) -> EnvFlags:
    e = env or get_env()
    return EnvFlags(
        env=e,
        is_local=(e == Env.LOCAL),
        is_dev=(e == Env.DEV),
        is_test=(e == Env.TEST),
        is_prod=(e == Env.PROD),
    )


def pick(*, prod, nonprod, env: Env | None = None):
    """
    Choose a value for production or anything else.

    Example:
        fmt = pick(prod="json", nonprod="plain")
    """
    return prod if (env or get_env()) is Env.PROD else nonprod
