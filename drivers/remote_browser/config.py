from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from .keys import LiteralCasePolicy

DEFAULT_WS_URL = "ws://127.0.0.1:9664/"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session-level engine state that must survive a channel restart."""

    debug: bool = False
    js_errors: bool = True
    extensions: tuple[str, ...] = ()

    def replay_commands(self) -> list[tuple[str, tuple[Any, ...]]]:
        """Commands that re-establish this state on a fresh engine, in order."""
        commands: list[tuple[str, tuple[Any, ...]]] = [
            ("set_debug", (bool(self.debug),)),
            ("set_js_errors", (bool(self.js_errors),)),
        ]
        commands.extend(("add_extension", (name,)) for name in self.extensions)
        return commands


def _env_flag(name: str, default: bool) -> bool:
    raw = (os.environ.get(name) or "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


def _env_float(name: str, default: float, *, lo: float, hi: float) -> float:
    try:
        value = float(os.environ.get(name) or default)
    except ValueError:
        value = default
    return max(lo, min(value, hi))


@dataclass
class DriverConfig:
    ws_url: str = DEFAULT_WS_URL
    timeout: float = 30.0
    connect_timeout: float = 5.0
    debug: bool = False
    js_errors: bool = True
    extensions: list[str] = field(default_factory=list)
    dump_frames: str | None = None
    dump_frames_raw: bool = False
    uppercase_modified_literals: bool = True

    @property
    def literal_case_policy(self) -> LiteralCasePolicy:
        if self.uppercase_modified_literals:
            return LiteralCasePolicy.UPPERCASE_WHEN_MODIFIED
        return LiteralCasePolicy.PRESERVE

    @classmethod
    def from_env(cls) -> DriverConfig:
        ws_url = (os.environ.get("REMOTE_BROWSER_WS_URL") or "").strip() or DEFAULT_WS_URL
        ext_raw = os.environ.get("REMOTE_BROWSER_EXTENSIONS", "")
        extensions = [path.strip() for path in ext_raw.split(",") if path.strip()]
        dump = (os.environ.get("REMOTE_BROWSER_DUMP_FRAMES") or "").strip() or None
        return cls(
            ws_url=ws_url,
            timeout=_env_float("REMOTE_BROWSER_TIMEOUT", 30.0, lo=1.0, hi=600.0),
            connect_timeout=_env_float("REMOTE_BROWSER_CONNECT_TIMEOUT", 5.0, lo=0.5, hi=120.0),
            debug=_env_flag("REMOTE_BROWSER_DEBUG", False),
            js_errors=_env_flag("REMOTE_BROWSER_JS_ERRORS", True),
            extensions=extensions,
            dump_frames=dump,
            dump_frames_raw=os.environ.get("REMOTE_BROWSER_DUMP_FRAMES_RAW") == "1",
            uppercase_modified_literals=_env_flag("REMOTE_BROWSER_UPPERCASE_MODIFIED", True),
        )

    def initial_session_config(self) -> SessionConfig:
        return SessionConfig(debug=self.debug, js_errors=self.js_errors, extensions=tuple(self.extensions))
