"""
Error taxonomy for the remote browser command channel.

Provides:
- ErrorKind: closed enumeration of failure kinds
- classify(): total lookup from wire error names to ErrorKind
- BrowserError and one subclass per kind (chosen by a static table)
- error_from_wire(): build a typed exception from an `error` reply object
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

WIRE_NAMESPACE = "Poltergeist"


class ErrorKind(str, Enum):
    JAVASCRIPT_ERROR = "JavascriptError"
    FRAME_NOT_FOUND = "FrameNotFound"
    INVALID_SELECTOR = "InvalidSelector"
    STATUS_FAIL_ERROR = "StatusFailError"
    NO_SUCH_WINDOW_ERROR = "NoSuchWindowError"
    SCRIPT_TIMEOUT_ERROR = "ScriptTimeoutError"
    UNSUPPORTED_FEATURE = "UnsupportedFeature"
    KEY_ERROR = "KeyError"
    DEAD_CHANNEL = "DeadChannel"
    GENERIC = "Generic"


# DeadChannel and Generic are client-side kinds; the engine never reports them by name.
WIRE_ERRORS: dict[str, ErrorKind] = {
    f"{WIRE_NAMESPACE}.{kind.value}": kind
    for kind in ErrorKind
    if kind not in (ErrorKind.DEAD_CHANNEL, ErrorKind.GENERIC)
}


def classify(wire_name: Any) -> ErrorKind:
    """Map a wire error name to its ErrorKind; unknown names yield GENERIC."""
    if not isinstance(wire_name, str):
        return ErrorKind.GENERIC
    return WIRE_ERRORS.get(wire_name.strip(), ErrorKind.GENERIC)


@dataclass(frozen=True, slots=True)
class JSErrorItem:
    message: str
    stack: str = ""

    def __str__(self) -> str:
        return f"{self.message}\n{self.stack}" if self.stack else self.message


class BrowserError(Exception):
    """Failure reported by (or about) the remote engine."""

    kind: ErrorKind = ErrorKind.GENERIC
    default_message = "There was an error inside the remote browser engine."

    def __init__(self, message: str | None = None, *, raw: Any = None) -> None:
        self.raw = raw
        self.message = message or self._derive_message()
        super().__init__(self.message)

    @property
    def name(self) -> str:
        if isinstance(self.raw, dict) and isinstance(self.raw.get("name"), str):
            return self.raw["name"]
        return self.kind.value

    @property
    def wire_args(self) -> list[Any]:
        if isinstance(self.raw, dict) and isinstance(self.raw.get("args"), list):
            return self.raw["args"]
        return []

    def _arg(self, index: int) -> Any:
        args = self.wire_args
        return args[index] if len(args) > index else None

    def _derive_message(self) -> str:
        params = "\n".join(str(a) for a in self.wire_args)
        if params:
            return f"{self.default_message} {self.name}: {params}"
        return self.default_message

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "kind": self.kind.value,
            "name": self.name,
            "message": self.message,
            "args": self.wire_args,
        }


class GenericBrowserError(BrowserError):
    kind = ErrorKind.GENERIC


class ProtocolError(GenericBrowserError):
    """Reply text that does not follow the response/error convention."""

    default_message = "Malformed reply from the remote browser engine."


class JavascriptError(BrowserError):
    kind = ErrorKind.JAVASCRIPT_ERROR

    @property
    def javascript_errors(self) -> list[JSErrorItem]:
        items = self._arg(0)
        if not isinstance(items, list):
            return []
        out: list[JSErrorItem] = []
        for item in items:
            if isinstance(item, dict):
                out.append(JSErrorItem(str(item.get("message") or ""), str(item.get("stack") or "")))
            else:
                out.append(JSErrorItem(str(item)))
        return out

    def _derive_message(self) -> str:
        lines = "\n\n".join(str(e) for e in self.javascript_errors)
        msg = (
            "One or more errors were raised in the Javascript code on the page. "
            "If you don't care about these errors, you can disable js error reporting."
        )
        return f"{msg}\n\n{lines}" if lines else msg


class FrameNotFound(BrowserError):
    kind = ErrorKind.FRAME_NOT_FOUND

    @property
    def frame_name(self) -> Any:
        return self._arg(0)

    def _derive_message(self) -> str:
        return f"The frame '{self.frame_name}' was not found."


class InvalidSelector(BrowserError):
    kind = ErrorKind.INVALID_SELECTOR

    @property
    def method(self) -> Any:
        return self._arg(0)

    @property
    def selector(self) -> Any:
        return self._arg(1)

    def _derive_message(self) -> str:
        return f"The browser raised a syntax error while trying to evaluate {self.method} selector {self.selector!r}"


class StatusFailError(BrowserError):
    kind = ErrorKind.STATUS_FAIL_ERROR

    @property
    def url(self) -> Any:
        return self._arg(0)

    @property
    def details(self) -> Any:
        return self._arg(1)

    def _derive_message(self) -> str:
        msg = f"Request to '{self.url}' failed to reach server, check DNS and/or server status"
        if self.details:
            msg += f" - {self.details}"
        return msg


class NoSuchWindowError(BrowserError):
    kind = ErrorKind.NO_SUCH_WINDOW_ERROR
    default_message = "The window with the given handle was not found."

    def _derive_message(self) -> str:
        return self.default_message


class ScriptTimeoutError(BrowserError):
    kind = ErrorKind.SCRIPT_TIMEOUT_ERROR
    default_message = "There was a timeout waiting for an asynchronous script to return."

    def _derive_message(self) -> str:
        return self.default_message


class UnsupportedFeature(BrowserError):
    kind = ErrorKind.UNSUPPORTED_FEATURE

    def _derive_message(self) -> str:
        first = self._arg(0)
        return str(first) if first else "The requested feature is not supported by the remote engine."


class BrowserKeyError(BrowserError):
    """Unknown object/id reference (wire name `KeyError`)."""

    kind = ErrorKind.KEY_ERROR

    def _derive_message(self) -> str:
        first = self._arg(0)
        return str(first) if first else "Unknown object reference."


class TransportError(BrowserError):
    """Fault in the byte-level channel to the engine, raised by transports rather than decoded from a reply."""

    kind = ErrorKind.DEAD_CHANNEL


class DeadChannel(TransportError):
    """The command channel to the remote engine is unusable."""

    kind = ErrorKind.DEAD_CHANNEL
    default_message = "The remote browser engine channel is no longer usable."

    def _derive_message(self) -> str:
        return self.default_message


ERROR_CLASSES: dict[ErrorKind, type[BrowserError]] = {
    ErrorKind.JAVASCRIPT_ERROR: JavascriptError,
    ErrorKind.FRAME_NOT_FOUND: FrameNotFound,
    ErrorKind.INVALID_SELECTOR: InvalidSelector,
    ErrorKind.STATUS_FAIL_ERROR: StatusFailError,
    ErrorKind.NO_SUCH_WINDOW_ERROR: NoSuchWindowError,
    ErrorKind.SCRIPT_TIMEOUT_ERROR: ScriptTimeoutError,
    ErrorKind.UNSUPPORTED_FEATURE: UnsupportedFeature,
    ErrorKind.KEY_ERROR: BrowserKeyError,
    ErrorKind.DEAD_CHANNEL: DeadChannel,
    ErrorKind.GENERIC: GenericBrowserError,
}


def error_from_wire(error: Any) -> BrowserError:
    """Build the typed exception for a reply's `error` object."""
    if not isinstance(error, dict):
        return GenericBrowserError(str(error) if error else None, raw=error)
    cls = ERROR_CLASSES[classify(error.get("name"))]
    message = error.get("message")
    return cls(message if isinstance(message, str) and message else None, raw=error)


__all__ = [
    "ERROR_CLASSES",
    "WIRE_ERRORS",
    "WIRE_NAMESPACE",
    "BrowserError",
    "BrowserKeyError",
    "DeadChannel",
    "ErrorKind",
    "FrameNotFound",
    "GenericBrowserError",
    "InvalidSelector",
    "JSErrorItem",
    "JavascriptError",
    "NoSuchWindowError",
    "ProtocolError",
    "ScriptTimeoutError",
    "StatusFailError",
    "TransportError",
    "UnsupportedFeature",
    "classify",
    "error_from_wire",
]
