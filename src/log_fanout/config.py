"""Configuration for the relay: defaults, environment overrides, and ``.env`` support.

Purpose
-------
Resolve the startup options (listen address, console logging, static files,
level threshold, queue sizing) from explicit arguments, ``LOG_FANOUT_*``
environment variables, and defaults, in that order of precedence.

Contents
--------
* :class:`RelaySettings` - validated, immutable startup configuration.
* :func:`build_settings` - merge explicit values with the environment.
* :func:`enable_dotenv` / :func:`should_use_dotenv` - opt-in ``.env`` loading.

System Role
-----------
Read once at startup; the resulting settings (including the level threshold)
are never mutated afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from dotenv import load_dotenv

from log_fanout.domain.levels import LogLevel

ENV_PREFIX = "LOG_FANOUT_"
DOTENV_ENV_VAR = f"{ENV_PREFIX}USE_DOTENV"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

_DOTENV_LOADED = False
_DOTENV_PATH: Path | None = None


@dataclass(frozen=True, slots=True)
class RelaySettings:
    """Validated startup options.

    Attributes
    ----------
    address:
        ``HOST:PORT`` the HTTP server binds to.
    open_browser:
        Launch the default browser on the static home page after startup.
    log_to_console:
        Emit diagnostic lines through the Rich console handler.
    static_dir:
        Directory served under ``/static``; empty disables static serving.
    home_page:
        File inside ``static_dir`` opened when ``open_browser`` is set.
    min_level:
        Severity threshold applied to producer records.
    echo:
        Register the local Rich console as an additional consumer.
    queue_maxsize / queue_full_policy / queue_put_timeout:
        Inbound queue capacity and overflow behaviour.
    send_timeout:
        Seconds a single consumer write may take before the consumer is dropped.
    """

    address: str = "localhost:9000"
    open_browser: bool = False
    log_to_console: bool = False
    static_dir: str = "./static/"
    home_page: str = "index.html"
    min_level: LogLevel = LogLevel.DEBUG
    echo: bool = False
    queue_maxsize: int = 2048
    queue_full_policy: str = "block"
    queue_put_timeout: float = 1.0
    send_timeout: float = 5.0

    @property
    def host(self) -> str:
        return _split_address(self.address)[0]

    @property
    def port(self) -> int:
        return _split_address(self.address)[1]

    @property
    def serves_static(self) -> bool:
        return self.static_dir != ""

    @property
    def home_url(self) -> str:
        """Return the URL of the static home page.

        Examples
        --------
        >>> RelaySettings().home_url
        'http://localhost:9000/static/index.html'
        """
        return f"http://{self.address}/static/{self.home_page}"


_ENV_FIELDS: Mapping[str, str] = {
    "address": "ADDRESS",
    "open_browser": "OPEN_BROWSER",
    "log_to_console": "LOG_TO_CONSOLE",
    "static_dir": "STATIC_DIR",
    "home_page": "HOME_PAGE",
    "min_level": "MIN_LEVEL",
    "echo": "ECHO",
    "queue_maxsize": "QUEUE_MAXSIZE",
    "queue_full_policy": "QUEUE_FULL_POLICY",
    "queue_put_timeout": "QUEUE_PUT_TIMEOUT",
    "send_timeout": "SEND_TIMEOUT",
}


def build_settings(environ: Mapping[str, str] | None = None, **overrides: Any) -> RelaySettings:
    """Merge ``overrides`` (explicit values), ``environ`` and defaults.

    ``None`` overrides are ignored so CLI options left unset fall through to
    the environment.

    Raises
    ------
    ValueError
        When any resolved value is invalid.

    Examples
    --------
    >>> build_settings({"LOG_FANOUT_MIN_LEVEL": "2"}).min_level
    <LogLevel.WARN: 2>
    >>> build_settings({"LOG_FANOUT_MIN_LEVEL": "2"}, min_level=0).min_level
    <LogLevel.DEBUG: 0>
    """

    env = os.environ if environ is None else environ
    unknown = set(overrides) - set(_ENV_FIELDS)
    if unknown:
        raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")

    raw: dict[str, Any] = {}
    for name, suffix in _ENV_FIELDS.items():
        explicit = overrides.get(name)
        if explicit is not None:
            raw[name] = explicit
            continue
        env_value = env.get(f"{ENV_PREFIX}{suffix}")
        if env_value is not None:
            raw[name] = env_value

    values: dict[str, Any] = {}
    if "address" in raw:
        address = str(raw["address"]).strip()
        _split_address(address)
        values["address"] = address
    for name in ("open_browser", "log_to_console", "echo"):
        if name in raw:
            values[name] = _coerce_bool(name, raw[name])
    for name in ("static_dir", "home_page"):
        if name in raw:
            values[name] = str(raw[name])
    if "min_level" in raw:
        values["min_level"] = LogLevel.parse_threshold(raw["min_level"])
    if "queue_maxsize" in raw:
        values["queue_maxsize"] = _coerce_int("queue_maxsize", raw["queue_maxsize"], minimum=0)
    if "queue_full_policy" in raw:
        policy = str(raw["queue_full_policy"]).strip().lower()
        if policy not in {"block", "drop"}:
            raise ValueError("queue_full_policy must be 'block' or 'drop'")
        values["queue_full_policy"] = policy
    for name in ("queue_put_timeout", "send_timeout"):
        if name in raw:
            values[name] = _coerce_positive_float(name, raw[name])
    return RelaySettings(**values)


def should_use_dotenv(*, explicit: bool | None = None, env_value: str | None = None) -> bool:
    """Decide whether ``.env`` loading is enabled.

    An explicit CLI flag wins; otherwise ``LOG_FANOUT_USE_DOTENV`` decides.

    Examples
    --------
    >>> should_use_dotenv(explicit=False, env_value="1")
    False
    >>> should_use_dotenv(env_value="yes")
    True
    """
    if explicit is not None:
        return explicit
    if env_value is None:
        return False
    return env_value.strip().lower() in _TRUTHY


def enable_dotenv(*, search_from: Path | None = None) -> Path | None:
    """Load the nearest ``.env`` walking upwards from ``search_from`` (default: cwd).

    Existing environment variables keep precedence. Subsequent calls return
    the previously loaded path without touching the environment again.
    """
    global _DOTENV_LOADED, _DOTENV_PATH
    if _DOTENV_LOADED:
        return _DOTENV_PATH
    start = (search_from or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            load_dotenv(candidate, override=False)
            _DOTENV_PATH = candidate
            break
    _DOTENV_LOADED = True
    return _DOTENV_PATH


def _reset_dotenv_state_for_testing() -> None:
    global _DOTENV_LOADED, _DOTENV_PATH
    _DOTENV_LOADED = False
    _DOTENV_PATH = None


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ValueError(f"address must be HOST:PORT, got {address!r}")
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ValueError(f"address port must be an integer, got {port_text!r}") from exc
    if port <= 0:
        raise ValueError(f"address port must be positive, got {port}")
    return host, port


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {value!r}")


def _coerce_int(name: str, value: Any, *, minimum: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if number < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {number}")
    return number


def _coerce_positive_float(name: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if number <= 0:
        raise ValueError(f"{name} must be positive, got {number}")
    return number


__all__ = [
    "DOTENV_ENV_VAR",
    "ENV_PREFIX",
    "RelaySettings",
    "build_settings",
    "enable_dotenv",
    "should_use_dotenv",
]
