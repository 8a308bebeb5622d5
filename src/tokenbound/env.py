# src/tokenbound/env.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_loaded_from: Optional[Path] = None
_attempted = False


def _dotenv_path(explicit: Optional[str]) -> Path:
    # explicit argument, then TOKENBOUND_DOTENV_PATH, then ./.env
    return Path(explicit or os.getenv("TOKENBOUND_DOTENV_PATH") or ".env").expanduser()


def load_dotenv_if_present(dotenv_path: Optional[str] = None) -> bool:
    """Load TOKENBOUND_* settings from a .env file, once per process.

    Variables already in the environment win over the file. Returns True only
    when this call found and loaded a file.
    """
    global _attempted, _loaded_from
    if _attempted:
        return False
    _attempted = True

    path = _dotenv_path(dotenv_path)
    if not path.is_file():
        return False

    load_dotenv(dotenv_path=path, override=False)
    _loaded_from = path
    return True


def loaded_dotenv_path() -> Optional[Path]:
    """The file load_dotenv_if_present() read, if any."""
    return _loaded_from


def reset_dotenv_state() -> None:
    """Forget earlier loads (tests only)."""
    global _attempted, _loaded_from
    _attempted = False
    _loaded_from = None
