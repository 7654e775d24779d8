"""Client-side driver for a remote browser-automation engine.

`Session` is the entry point; `CommandChannel` is the request/response layer
beneath it and `KeyNormalizer` compiles key specifications for `send_keys`.
"""

from __future__ import annotations

from .channel import CommandChannel, decode_reply
from .command import Command
from .config import DriverConfig, SessionConfig
from .errors import (
    BrowserError,
    BrowserKeyError,
    DeadChannel,
    ErrorKind,
    FrameNotFound,
    GenericBrowserError,
    InvalidSelector,
    JavascriptError,
    NoSuchWindowError,
    ProtocolError,
    ScriptTimeoutError,
    StatusFailError,
    TransportError,
    UnsupportedFeature,
    classify,
)
from .keys import Group, KeyAction, KeyNormalizer, Literal, LiteralCasePolicy, Named, normalize_keys
from .session import Session
from .transport import NoopSupervisor, WebSocketTransport

__all__ = [
    "BrowserError",
    "BrowserKeyError",
    "Command",
    "CommandChannel",
    "DeadChannel",
    "DriverConfig",
    "ErrorKind",
    "FrameNotFound",
    "GenericBrowserError",
    "Group",
    "InvalidSelector",
    "JavascriptError",
    "KeyAction",
    "KeyNormalizer",
    "Literal",
    "LiteralCasePolicy",
    "Named",
    "NoSuchWindowError",
    "NoopSupervisor",
    "ProtocolError",
    "ScriptTimeoutError",
    "Session",
    "SessionConfig",
    "StatusFailError",
    "TransportError",
    "UnsupportedFeature",
    "WebSocketTransport",
    "classify",
    "decode_reply",
    "normalize_keys",
]
