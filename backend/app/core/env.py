"""
Centralized environment detection utilities.

All checks read ENV through settings so that tests can switch environments
by assigning settings.ENV.
"""
from .config import settings


def get_env_name() -> str:
    """
    Get the current environment name.

    Returns:
        Environment name (lowercase): 'local', 'dev', 'staging', 'prod', etc.
    """
    return (settings.ENV or "dev").lower()


def is_local_env() -> bool:
    """True if ENV is 'local' or 'dev'."""
    return get_env_name() in {"local", "dev"}


def is_production_env() -> bool:
    """True if ENV is 'prod' or 'production'."""
    return get_env_name() in {"prod", "production"}
