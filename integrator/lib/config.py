"""
Configuration loaders for the integrator.

Two files drive a run: the branch list (see branchlist.py) and an optional
settings file of KEY=value defaults. Both are found the same way: an
explicit path wins, then the tree-local copy, then the user's, then the
system's.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from . import envparse
from .constants import (
    BRANCHES_FILENAME,
    CONFIG_DIRNAME,
    DEFAULT_BASELINE,
    DEFAULT_INTEGRATION_BRANCH,
    DEFAULT_LOCK_TIMEOUT,
    DEFAULT_MANIFEST_PATH,
    DEFAULT_MERGE_LOG,
    NOOP_ASK,
    SETTINGS_FILENAME,
    SYSTEM_CONFIG_DIR,
    TRACK_TAG,
    USER_CONFIG_DIR,
    VALID_NOOP_POLICIES,
    VALID_TRACK_MODES,
)
from .errors import ConfigNotFound
from integrator.git.runner import NETWORK_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Everything a run needs to know, after flags and settings files are merged."""
    repo_path: Path
    push_url: str = ""
    baseline: str = DEFAULT_BASELINE
    branch: str = DEFAULT_INTEGRATION_BRANCH
    track: str = TRACK_TAG
    rerere_url: str = ""
    config_path: Path | None = None  # Explicit branch list, if given
    interactive: bool = False
    force_merge: bool = False
    assume_yes: bool = False
    noop_policy: str = NOOP_ASK
    manifest_path: str = DEFAULT_MANIFEST_PATH
    merge_log: Path = Path(DEFAULT_MERGE_LOG)
    fetch_timeout: int = NETWORK_TIMEOUT
    lock_timeout: int = DEFAULT_LOCK_TIMEOUT


def candidate_paths(filename: str, repo_path: Path) -> list[Path]:
    """Default locations for a config file, highest priority first."""
    return [
        repo_path / CONFIG_DIRNAME / filename,
        Path(USER_CONFIG_DIR).expanduser() / filename,
        Path(SYSTEM_CONFIG_DIR) / filename,
    ]


def find_config_file(filename: str, repo_path: Path, explicit: Path | None = None) -> Path | None:
    """
    Locate a config file.

    An explicit path is authoritative: if it doesn't exist the lookup
    fails rather than silently picking up some other file.
    """
    if explicit is not None:
        return explicit if explicit.is_file() else None
    for path in candidate_paths(filename, repo_path):
        if path.is_file():
            return path
    return None


def locate_branch_config(repo_path: Path, explicit: Path | None = None) -> Path:
    """Find the branch list or raise ConfigNotFound."""
    path = find_config_file(BRANCHES_FILENAME, repo_path, explicit)
    if path is None:
        searched = [explicit] if explicit is not None else candidate_paths(BRANCHES_FILENAME, repo_path)
        raise ConfigNotFound(searched=searched)
    return path


def _choice(env: dict, key: str, valid: tuple, default: str) -> str:
    value = env.get(key)
    if value is None or value == "":
        return default
    if value not in valid:
        logger.warning(f"Unknown {key} '{value}', using '{default}'")
        return default
    return value


def _int(env: dict, key: str, default: int) -> int:
    value = env.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid {key} '{value}', using {default}")
        return default


def load_settings(
    overrides: dict | None = None,
    repo_hint: Path | None = None,
    settings_path: Path | None = None,
) -> Settings:
    """
    Build Settings from built-in defaults, the settings file and overrides.

    Args:
        overrides: Values from the command line keyed by Settings field
            name. None values mean "not given" and are ignored.
        repo_hint: Where to look for a tree-local settings file (defaults
            to the override repo_path, else the current directory)
        settings_path: Explicit settings file; must exist if given

    Raises:
        FileNotFoundError: if an explicit settings file is missing
        ValueError: if the settings file is malformed
    """
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    hint = Path(overrides.get("repo_path") or repo_hint or Path.cwd())

    env: dict[str, str] = {}
    if settings_path is not None:
        env = envparse.load_env(settings_path)
    else:
        found = find_config_file(SETTINGS_FILENAME, hint)
        if found is not None:
            logger.debug(f"Loading settings from {found}")
            env = envparse.load_env(found)

    settings = Settings(
        repo_path=Path(env.get("REPO_PATH") or hint),
        push_url=env.get("PUSH_URL", ""),
        baseline=env.get("BASELINE") or DEFAULT_BASELINE,
        branch=env.get("BRANCH") or DEFAULT_INTEGRATION_BRANCH,
        track=_choice(env, "TRACK", VALID_TRACK_MODES, TRACK_TAG),
        rerere_url=env.get("RERERE_URL", ""),
        noop_policy=_choice(env, "NOOP_POLICY", VALID_NOOP_POLICIES, NOOP_ASK),
        manifest_path=env.get("MANIFEST_PATH") or DEFAULT_MANIFEST_PATH,
        merge_log=Path(env.get("MERGE_LOG") or DEFAULT_MERGE_LOG),
        fetch_timeout=_int(env, "FETCH_TIMEOUT", NETWORK_TIMEOUT),
        lock_timeout=_int(env, "LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT),
    )

    for key, value in overrides.items():
        if not hasattr(settings, key):
            raise ValueError(f"Unknown setting '{key}'")
        if key in ("repo_path", "config_path", "merge_log"):
            value = Path(value)
        setattr(settings, key, value)

    if settings.track not in VALID_TRACK_MODES:
        raise ValueError(f"Invalid tracking mode '{settings.track}'")
    if settings.noop_policy not in VALID_NOOP_POLICIES:
        raise ValueError(f"Invalid no-op policy '{settings.noop_policy}'")

    return settings
