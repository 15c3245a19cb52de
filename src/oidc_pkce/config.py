"""Client configuration with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.oidc-pkce/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **User config** -- ``<config_dir>/config.json`` holding any of the
  :data:`CONFIG_KEYS`. Managed via :func:`load_user_config` and
  :func:`save_user_config`.
* **Project config** -- ``./oidc-pkce.json`` in the working directory, for
  repositories that pin a provider.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, project config, user config and defaults, and
  :func:`resolve_client_config` validates the result into a
  :class:`~oidc_pkce.models.ClientConfig`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from oidc_pkce.exceptions import ConfigError
from oidc_pkce.models import DEFAULT_SCOPE, ClientConfig

_APP_NAME = "oidc-pkce"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "oidc-pkce.json"

CONFIG_KEYS = ("discovery_url", "client_id", "redirect_uri", "scope")
"""Keys accepted in config files, in display order."""

ENV_VARS = {
    "discovery_url": "OIDC_DISCOVERY_URL",
    "client_id": "OIDC_CLIENT_ID",
    "redirect_uri": "OIDC_REDIRECT_URI",
    "scope": "OIDC_SCOPE",
}
"""Environment variable consulted for each config key."""

_DEFAULTS = {"scope": DEFAULT_SCOPE}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/oidc-pkce/`` (default
    ``~/.config/oidc-pkce/``). On macOS/Windows: ``~/.oidc-pkce/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/oidc-pkce/`` (default
    ``~/.local/share/oidc-pkce/``). On macOS/Windows: ``~/.oidc-pkce/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the original file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Config files ---


def user_config_path() -> Path:
    """Path to the user config file (may not exist yet)."""
    return get_config_dir() / _CONFIG_FILENAME


def project_config_path() -> Path:
    """Path to the project config file in the current directory (may not exist)."""
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


def _read_layer(path: Path, label: str) -> dict[str, str]:
    """Read and check one JSON config file.

    Raises:
        ConfigError: If the file is not a JSON object of known string keys.
    """
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} config at {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} config at {path}: expected a JSON object")

    unknown = sorted(set(data) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigError(
            f"Invalid {label} config at {path}: unknown key(s) {', '.join(unknown)}"
        )
    for key, value in data.items():
        if not isinstance(value, str):
            raise ConfigError(
                f"Invalid {label} config at {path}: '{key}' must be a string"
            )
    return data


def load_user_config() -> dict[str, str]:
    """Load the user config, returning an empty dict if the file does not exist.

    Raises:
        ConfigError: If the file exists but is invalid.
    """
    path = user_config_path()
    if not path.is_file():
        return {}
    return _read_layer(path, "user")


def save_user_config(data: dict[str, str]) -> Path:
    """Persist *data* atomically as the user config and return the file path.

    Raises:
        ConfigError: If *data* contains keys outside :data:`CONFIG_KEYS`.
    """
    unknown = sorted(set(data) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}")
    ordered = {key: data[key] for key in CONFIG_KEYS if key in data}
    path = user_config_path()
    _atomic_write(path, json.dumps(ordered, indent=2) + "\n")
    return path


def load_project_config() -> Optional[dict[str, str]]:
    """Load ``./oidc-pkce.json``, or return ``None`` if it does not exist.

    Raises:
        ConfigError: If the file exists but is invalid.
    """
    path = project_config_path()
    if not path.is_file():
        return None
    return _read_layer(path, "project")


def save_project_config(data: dict[str, str]) -> Path:
    """Persist *data* atomically as ``./oidc-pkce.json`` and return the file path."""
    ordered = {key: data[key] for key in CONFIG_KEYS if key in data}
    path = project_config_path()
    _atomic_write(path, json.dumps(ordered, indent=2) + "\n")
    return path


# --- Precedence resolution ---


def resolve_settings(
    discovery_url: Optional[str] = None,
    client_id: Optional[str] = None,
    redirect_uri: Optional[str] = None,
    scope: Optional[str] = None,
) -> dict[str, tuple[str, str]]:
    """Merge every config layer and report where each value came from.

    Precedence (high to low):
        1. CLI flags (the keyword arguments)
        2. Environment variables (:data:`ENV_VARS`)
        3. Project config (``./oidc-pkce.json``)
        4. User config (``<config_dir>/config.json``)
        5. Defaults (``scope`` only)

    Returns:
        A mapping of config key to ``(value, source)``, where *source* is one
        of ``"flag"``, ``"env"``, ``"project"``, ``"user"`` or ``"default"``.
        Keys with no value in any layer are omitted.
    """
    flags = {
        "discovery_url": discovery_url,
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": scope,
    }
    user = load_user_config()
    project = load_project_config() or {}

    resolved: dict[str, tuple[str, str]] = {}
    for key in CONFIG_KEYS:
        env_value = os.environ.get(ENV_VARS[key])
        if flags[key] is not None:
            resolved[key] = (flags[key], "flag")  # type: ignore[assignment]
        elif env_value is not None:
            resolved[key] = (env_value, "env")
        elif key in project:
            resolved[key] = (project[key], "project")
        elif key in user:
            resolved[key] = (user[key], "user")
        elif key in _DEFAULTS:
            resolved[key] = (_DEFAULTS[key], "default")
    return resolved


def resolve_client_config(
    discovery_url: Optional[str] = None,
    client_id: Optional[str] = None,
    redirect_uri: Optional[str] = None,
    scope: Optional[str] = None,
) -> ClientConfig:
    """Resolve and validate the effective :class:`~oidc_pkce.models.ClientConfig`.

    Raises:
        ConfigError: If a required key is missing from every layer, or a
            value fails validation.
    """
    settings = resolve_settings(
        discovery_url=discovery_url,
        client_id=client_id,
        redirect_uri=redirect_uri,
        scope=scope,
    )
    missing = [key for key in CONFIG_KEYS if key not in settings]
    if missing:
        hints = ", ".join(f"{key} ({ENV_VARS[key]})" for key in missing)
        raise ConfigError(f"Missing client configuration: {hints}")

    try:
        return ClientConfig(**{key: value for key, (value, _) in settings.items()})
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"Invalid client configuration: {problems}") from exc
