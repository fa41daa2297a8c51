"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles the persistent configuration of the ``fireauth`` CLI:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.fireauth/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~fireauth.models.GlobalConfig`
  JSON file storing defaults (API key source, base URLs, timeouts, output).
* **Precedence resolution** -- :func:`resolve_config` merges the CLI flag,
  environment variables, project-local config, and global config into the
  :class:`~fireauth.models.ClientConfig` that :class:`~fireauth.auth.AuthClient`
  is built from.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  (API keys, passwords, refresh tokens) from env vars, files, or an
  interactive prompt.

Only settings are persisted here.  Sessions and refresh tokens are never
written to disk by this package.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from fireauth.exceptions import ConfigError
from fireauth.models import ClientConfig, GlobalConfig

_APP_NAME = "fireauth"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "fireauth.json"

API_KEY_ENV_VAR = "FIREAUTH_API_KEY"

_PROJECT_URL_KEYS = ("identity_base_url", "secure_token_base_url")


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/fireauth/`` (default ``~/.config/fireauth/``).
    On macOS/Windows: ``~/.fireauth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/fireauth/`` (default ``~/.local/share/fireauth/``).
    On macOS/Windows: ``~/.fireauth/data/``.
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

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
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


# --- Global config ---


def global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~fireauth.models.GlobalConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


def set_global_value(key: str, value: str) -> GlobalConfig:
    """Set one dot-separated key of the global config and save it.

    The raw string is coerced to the type of the current value (float for
    timeouts); ``None``-valued keys take the string as-is.

    Args:
        key: Key path such as ``request.timeout`` or ``api_key_source``.
        value: New value as typed on the command line.

    Returns:
        The saved configuration.

    Raises:
        ConfigError: If the key does not exist or the value is rejected.
    """
    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            raise ConfigError(f"Invalid config key: {key}")
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        raise ConfigError(f"Unknown config key: {key}")

    current = target[final_key]
    if isinstance(current, (int, float)) and not isinstance(current, bool):
        try:
            target[final_key] = float(value)
        except ValueError:
            raise ConfigError(f"Expected a number for {key}, got: {value}") from None
    else:
        target[final_key] = value

    try:
        config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid value for {key}: {exc}") from exc

    save_global_config(config)
    return config


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./fireauth.json``.

    Recognised keys are ``api_key_source``, ``identity_base_url`` and
    ``secure_token_base_url``, the latter two typically pointing a checkout
    at a local emulator.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file is not a valid JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(cli_api_key: Optional[str] = None) -> ClientConfig:
    """Resolve the client settings with the full precedence chain.

    Precedence for the API key (high to low):
        1. ``cli_api_key`` (the ``--api-key`` flag)
        2. ``FIREAUTH_API_KEY`` environment variable
        3. ``api_key_source`` in the project config (``./fireauth.json``)
        4. ``api_key_source`` in the global config

    Base URLs come from the project config when set there, otherwise from
    the global config.  Timeouts always come from the global config.

    Returns:
        A validated :class:`~fireauth.models.ClientConfig`.

    Raises:
        ConfigError: If no API key can be found, or a config file or
            credential source is invalid.
    """
    global_cfg = load_global_config()
    project = load_project_config() or {}

    settings: dict[str, Any] = {
        "identity_base_url": global_cfg.identity_base_url,
        "secure_token_base_url": global_cfg.secure_token_base_url,
        "request": global_cfg.request,
    }
    for key in _PROJECT_URL_KEYS:
        if project.get(key):
            settings[key] = project[key]

    api_key = cli_api_key or os.environ.get(API_KEY_ENV_VAR)
    if not api_key:
        source = project.get("api_key_source") or global_cfg.api_key_source
        if source is None:
            raise ConfigError(
                f"No API key configured. Pass --api-key, set {API_KEY_ENV_VAR}, "
                "or run 'fireauth config set api_key_source env:VAR'"
            )
        api_key = resolve_credential(source)

    try:
        return ClientConfig(api_key=api_key, **settings)
    except ValueError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str, prompt: str = "Enter credential: ") -> str:
    """Resolve a secret from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively without echo (requires a TTY)

    Args:
        source: The source descriptor string.
        prompt: Text shown when *source* is ``"prompt"``.

    Returns:
        The resolved secret.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass(prompt)

    raise ConfigError(f"Unknown credential source format: {source}")
