from __future__ import annotations
import os
from pathlib import Path
from typing import Iterable, List


def _sep() -> str:
    return ';' if os.name == 'nt' else ':'


# Defaults
DEFAULT_PROMPT = 'ysh> '
DEFAULT_CONTINUATION_PROMPT = '...> '
DEFAULT_LOG_LEVEL = 'WARNING'


def _default_rc_files() -> List[Path]:
    return [Path.home() / '.yshrc']


def paths_from_env(var: str, defaults: Iterable[Path]) -> List[Path]:
    raw = os.environ.get(var)
    if not raw:
        return [Path(p) for p in defaults]
    sep = _sep()
    return [Path(p.strip()).expanduser() for p in raw.split(sep) if p.strip()]


def get_prompt() -> str:
    return os.environ.get('YSH_PROMPT', DEFAULT_PROMPT)


def get_continuation_prompt() -> str:
    return os.environ.get('YSH_CONTINUATION_PROMPT', DEFAULT_CONTINUATION_PROMPT)


def get_rc_files() -> List[Path]:
    # startup scripts run in order before the first prompt; missing files are skipped
    return paths_from_env('YSH_RC', _default_rc_files())


def get_log_level() -> str:
    return os.environ.get('YSH_LOG_LEVEL', DEFAULT_LOG_LEVEL).upper()
