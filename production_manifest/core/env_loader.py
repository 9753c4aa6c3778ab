"""
Environment loading for LLM credentials and the render callback.

The .env file is found once per process: ``PRODUCTION_MANIFEST_ENV_FILE``
names it explicitly, otherwise python-dotenv searches upward from the
working directory.
"""

import os
from pathlib import Path
from typing import Optional, Sequence

from dotenv import find_dotenv, load_dotenv

ENV_FILE_VAR = "PRODUCTION_MANIFEST_ENV_FILE"
RENDER_CALLBACK_VAR = "RENDER_CALLBACK_URL"

_loaded_from: Optional[Path] = None


def locate_env_file() -> Optional[Path]:
    """Return the .env file to load, or None when there is none."""
    explicit = os.getenv(ENV_FILE_VAR)
    if explicit:
        path = Path(explicit).expanduser()
        return path if path.is_file() else None
    found = find_dotenv(usecwd=True)
    return Path(found) if found else None


def ensure_env_loaded(env_path: Optional[Path] = None, override: bool = True) -> bool:
    """
    Load the .env file unless one was already loaded.

    Args:
        env_path: Explicit .env location; skips discovery
        override: Let .env values replace variables that are already set,
            which also covers variables exported as empty strings

    Returns:
        True if a file was loaded by this call
    """
    global _loaded_from

    if _loaded_from is not None:
        return False

    path = Path(env_path) if env_path else locate_env_file()
    if path is None or not path.is_file():
        return False

    load_dotenv(path, override=override)
    _loaded_from = path
    return True


def get_api_key(key_name: str, fallback_keys: Sequence[str] = ()) -> Optional[str]:
    """
    Read a credential from the environment, trying fallbacks in order.

    Empty and whitespace-only values count as missing.
    """
    ensure_env_loaded()
    for name in (key_name, *fallback_keys):
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None


def get_render_callback_url() -> Optional[str]:
    """URL the renderer calls when a render job finishes, if set."""
    return get_api_key(RENDER_CALLBACK_VAR)
