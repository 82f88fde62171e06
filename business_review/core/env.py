"""
Centralized environment detection utilities.

All functions check ENV only.
"""
import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_env_name() -> str:
    """Current environment name, lowercase. Defaults to 'dev'."""
    return os.getenv("ENV", "dev").lower()


@lru_cache(maxsize=1)
def is_local_env() -> bool:
    return get_env_name() in {"local", "dev", "test"}


@lru_cache(maxsize=1)
def is_production_env() -> bool:
    return get_env_name() in {"prod", "production"}
