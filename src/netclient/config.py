"""Settings files, XDG paths, precedence resolution and credential sources.

This module turns what a user writes down into a
:class:`~netclient.models.ClientConfig`:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.netclient/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Settings files** -- JSON or YAML documents validated as
  :class:`~netclient.models.ClientSettings`. See :func:`load_settings_file`.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI values,
  environment variables, the project (or ``--config``) file and the user
  file over the defaults.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files or an interactive prompt.
* **Strategy building** -- :func:`build_strategy` and
  :func:`build_client_config` turn settings into live strategy objects.

Writes use a temp-file-then-rename strategy (:func:`_atomic_write`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import re
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from netclient.exceptions import ConfigError
from netclient.models import (
    AuthSettings,
    BasicAuth,
    BearerAuth,
    ClientConfig,
    ClientSettings,
    CustomAuth,
    LogLevel,
    NoAuth,
    RuleBasedAuth,
    rule,
)

_APP_NAME = "netclient"
_CONFIG_STEMS = ("config.json", "config.yaml", "config.yml")
_PROJECT_CONFIG_NAMES = ("netclient.json", "netclient.yaml", "netclient.yml")

ENV_BASE_URL = "NETCLIENT_BASE_URL"
ENV_LOG_LEVEL = "NETCLIENT_LOG_LEVEL"
ENV_MAX_RETRIES = "NETCLIENT_MAX_RETRIES"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True on Linux and the BSDs."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from *env_var*, else ``$HOME/<segments>``."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/netclient/`` (default ``~/.config/netclient/``).
    On macOS/Windows: ``~/.netclient/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/netclient/`` (default ``~/.local/share/netclient/``).
    On macOS/Windows: ``~/.netclient/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def user_config_path() -> Optional[Path]:
    """Return the first existing user settings file, or ``None``."""
    config_dir = get_config_dir()
    for name in _CONFIG_STEMS:
        path = config_dir / name
        if path.is_file():
            return path
    return None


def project_config_path() -> Optional[Path]:
    """Return ``./netclient.json`` (or ``.yaml`` / ``.yml``) if present."""
    for name in _PROJECT_CONFIG_NAMES:
        path = Path.cwd() / name
        if path.is_file():
            return path
    return None


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* atomically using a temp file and rename.

    The temp file lives next to *path* so ``os.replace`` is a same-device
    rename. It is removed on any failure.
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


# --- Settings files ---


def read_settings_document(path: Path) -> dict[str, Any]:
    """Parse a JSON or YAML settings document into a dict.

    The format is picked from the suffix: ``.json`` is JSON, anything else
    is parsed as YAML (which also accepts JSON). An empty YAML file yields
    an empty dict.

    Raises:
        ConfigError: If the file is missing, unreadable, malformed, or not
            a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text) if text.strip() else {}
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {path} must contain a mapping (got {type(data).__name__})"
        )
    return data


def load_settings_file(path: Path) -> ClientSettings:
    """Load and validate one settings file.

    Raises:
        ConfigError: If the file cannot be parsed or fails validation.
    """
    data = read_settings_document(path)
    try:
        return ClientSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {path}:\n{exc}") from exc


def save_user_settings(data: dict[str, Any]) -> Path:
    """Validate *data* and write it to the user's ``config.json``.

    Returns:
        The path written.

    Raises:
        ConfigError: If *data* is not valid settings.
    """
    try:
        settings = ClientSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings:\n{exc}") from exc
    path = get_config_dir() / "config.json"
    payload = settings.model_dump(mode="json", exclude_defaults=True)
    _atomic_write(path, json.dumps(payload, indent=2) + "\n")
    return path


def settings_files(config_path: Optional[Path] = None) -> list[Path]:
    """Return the settings files that apply, lowest precedence first.

    The user file comes first. An explicit *config_path* takes the place
    of the project file.
    """
    files: list[Path] = []
    user = user_config_path()
    if user is not None:
        files.append(user)
    if config_path is not None:
        files.append(Path(config_path).expanduser())
    else:
        project = project_config_path()
        if project is not None:
            files.append(project)
    return files


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overlay* into a copy of *base*."""
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def env_overrides() -> dict[str, Any]:
    """Collect settings from ``NETCLIENT_*`` environment variables.

    Raises:
        ConfigError: If a variable holds an invalid value.
    """
    overrides: dict[str, Any] = {}

    base_url = os.environ.get(ENV_BASE_URL)
    if base_url:
        overrides["base_url"] = base_url

    log_level = os.environ.get(ENV_LOG_LEVEL)
    if log_level:
        try:
            level = LogLevel(log_level)
        except ValueError:
            choices = ", ".join(lvl.value for lvl in LogLevel)
            raise ConfigError(
                f"{ENV_LOG_LEVEL}={log_level!r} is not one of: {choices}"
            ) from None
        overrides["logging"] = {"enabled": level != LogLevel.NONE, "level": level.value}

    max_retries = os.environ.get(ENV_MAX_RETRIES)
    if max_retries:
        try:
            overrides["retry"] = {"max_retries": int(max_retries)}
        except ValueError:
            raise ConfigError(
                f"{ENV_MAX_RETRIES}={max_retries!r} is not an integer"
            ) from None

    return overrides


# --- Precedence resolution ---


def resolve_settings(
    config_path: Optional[Path] = None,
    cli_base_url: Optional[str] = None,
    cli_overrides: Optional[dict[str, Any]] = None,
) -> ClientSettings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI values (``cli_base_url``, ``cli_overrides``)
        2. Environment variables (``NETCLIENT_BASE_URL``,
           ``NETCLIENT_LOG_LEVEL``, ``NETCLIENT_MAX_RETRIES``)
        3. ``--config`` file, or ``./netclient.json|yaml|yml``
        4. User file (``~/.config/netclient/config.json|yaml``)
        5. Defaults

    Raises:
        ConfigError: If any layer is invalid.
    """
    data: dict[str, Any] = {}
    for path in settings_files(config_path):
        data = _deep_merge(data, read_settings_document(path))

    data = _deep_merge(data, env_overrides())

    if cli_overrides:
        data = _deep_merge(data, cli_overrides)
    if cli_base_url is not None:
        data["base_url"] = cli_base_url

    try:
        return ClientSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings:\n{exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)

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
        return getpass.getpass("Enter credential: ")

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Strategy building ---


def _require_source(auth: AuthSettings) -> str:
    if not auth.source:
        raise ConfigError(f"Auth type '{auth.type}' requires a credential 'source'")
    return auth.source


def _build_basic(auth: AuthSettings) -> BasicAuth:
    secret = resolve_credential(_require_source(auth))
    if auth.username is not None:
        username, password = auth.username, secret
    else:
        if ":" not in secret:
            raise ConfigError(
                "Basic auth without 'username' expects the source to hold 'username:password'"
            )
        username, password = secret.split(":", 1)
    return BasicAuth(username=username, password=password, custom_headers=auth.headers)


def _build_bearer(auth: AuthSettings) -> BearerAuth:
    source = _require_source(auth)
    token = resolve_credential(source)
    refresh = (
        resolve_credential(auth.refresh_token_source)
        if auth.refresh_token_source
        else None
    )

    if source == "prompt":
        def provider() -> str:
            return token
    else:
        # Re-read so a rotated token file or env value is picked up.
        def provider() -> str:
            return resolve_credential(source)

    return BearerAuth(token_provider=provider, refresh_token=refresh, custom_headers=auth.headers)


def _build_leaf(auth: AuthSettings) -> Any:
    if auth.type == "none":
        return NoAuth()
    if auth.type == "basic":
        return _build_basic(auth)
    if auth.type == "bearer":
        return _build_bearer(auth)
    if auth.type == "custom":
        return CustomAuth(static_headers=auth.headers)
    raise ConfigError(
        f"Auth type '{auth.type}' cannot be nested inside a rule_based table"
    )


def build_strategy(auth: Optional[AuthSettings]) -> Any:
    """Build the strategy object described by *auth*.

    Raises:
        ConfigError: On a missing or unresolvable credential, a nested
            ``rule_based`` entry, or an invalid path pattern.
    """
    if auth is None:
        return NoAuth()
    if auth.type != "rule_based":
        return _build_leaf(auth)

    rules = []
    for entry in auth.rules:
        try:
            pattern = re.compile(entry.path)
        except re.error as exc:
            raise ConfigError(f"Invalid auth rule path pattern {entry.path!r}: {exc}") from exc
        rules.append(rule(pattern, _build_leaf(entry.auth), methods=entry.methods))
    default = _build_leaf(auth.default) if auth.default is not None else None
    return RuleBasedAuth(rules=rules, default=default)


def build_client_config(settings: ClientSettings) -> ClientConfig:
    """Turn resolved :class:`~netclient.models.ClientSettings` into a :class:`ClientConfig`."""
    return ClientConfig(
        base_url=settings.base_url,
        default_headers=settings.default_headers,
        expect_success=settings.expect_success,
        logging=settings.logging,
        serialization=settings.serialization,
        auth_strategy=build_strategy(settings.auth),
        timeouts=settings.timeouts,
        retry_policy=settings.retry,
    )
