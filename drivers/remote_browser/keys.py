"""
Keystroke normalization.

Compiles a nested key specification into the flat, ordered list of key actions
the engine replays:

    Group(Named("control"), Group(Literal("a")))  ->  [KeyAction(text="A", modifiers=("Ctrl",))]

Node kinds:
- Literal: plain text to type
- Named: a logical key ("enter", "page_down") or a modifier ("shift", "command")
- Group: keys held together; modifiers named inside a group apply to the
  group's later siblings and everything nested under them, never outside it
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class Literal:
    text: str


@dataclass(frozen=True, slots=True)
class Named:
    symbol: str


@dataclass(frozen=True, slots=True)
class Group:
    children: tuple[KeySpecNode, ...] = ()

    @classmethod
    def of(cls, *children: Any) -> Group:
        return cls(tuple(coerce_key_spec(c) for c in children))


KeySpecNode = Union[Literal, Named, Group]

ModifierSet = tuple[str, ...]

MODIFIERS = ("Shift", "Ctrl", "Alt", "Meta")
KEYPAD = "keypad"

KEY_ALIASES: dict[str, str] = {
    "command": "Meta",
    "equals": "Equal",
    "Control": "Ctrl",
    "control": "Ctrl",
    "multiply": "numpad*",
    "add": "numpad+",
    "divide": "numpad/",
    "subtract": "numpad-",
    "decimal": "numpad.",
}

_MODIFIER_NAMES = {
    "shift": "Shift",
    "ctrl": "Ctrl",
    "control": "Ctrl",
    "alt": "Alt",
    "meta": "Meta",
    "command": "Meta",
}

_KEYPAD_RE = re.compile(r"numpad(.)")
_CAPITALIZED_RE = re.compile(r"[A-Z]")


class LiteralCasePolicy(str, Enum):
    # Engine-specific: the engine expects the shifted form of text typed under modifiers.
    UPPERCASE_WHEN_MODIFIED = "uppercase_when_modified"
    PRESERVE = "preserve"


@dataclass(frozen=True, slots=True)
class KeyAction:
    text: str | None = None
    key: str | None = None
    modifiers: ModifierSet = ()

    @property
    def is_keypad(self) -> bool:
        return KEYPAD in self.modifiers

    def to_wire(self) -> Any:
        """Encode for the `send_keys` command (plain text stays a bare string)."""
        modifier = ",".join(m.lower() for m in self.modifiers)
        if self.text is not None:
            if not modifier:
                return self.text
            return {"keys": self.text, "modifier": modifier}
        out: dict[str, Any] = {"keys": self.key} if self.is_keypad else {"key": self.key}
        if modifier:
            out["modifier"] = modifier
        return out


def coerce_key_spec(value: Any) -> KeySpecNode:
    """Build a KeySpecNode from plain values.

    `":enter"` -> Named("enter"), any other str -> Literal, list/tuple -> Group.
    Text that starts with a colon must be passed as an explicit Literal.
    """
    if isinstance(value, (Literal, Named, Group)):
        return value
    if isinstance(value, str):
        if len(value) > 1 and value.startswith(":"):
            return Named(value[1:])
        return Literal(value)
    if isinstance(value, (list, tuple)):
        return Group(tuple(coerce_key_spec(v) for v in value))
    raise TypeError(f"Unsupported key specification: {value!r}")


def resolve_alias(symbol: str) -> str:
    return KEY_ALIASES.get(symbol, symbol)


def modifier_name(symbol: str) -> str | None:
    """Canonical modifier name for `symbol`, or None if it is a regular key."""
    return _MODIFIER_NAMES.get(symbol.lower())


def key_name(symbol: str) -> str:
    """`page_down` -> `PageDown`; names starting with an ASCII capital are kept."""
    if _CAPITALIZED_RE.match(symbol):
        return symbol
    return "".join(part.capitalize() for part in symbol.split("_"))


def coalesce_literals(children: Iterable[KeySpecNode]) -> list[KeySpecNode]:
    """Merge runs of adjacent Literal nodes into one; empty text is dropped."""
    out: list[KeySpecNode] = []
    run: list[str] = []
    for child in children:
        if isinstance(child, Literal):
            run.append(child.text)
            continue
        if run:
            out.append(Literal("".join(run)))
            run = []
        out.append(child)
    if run:
        out.append(Literal("".join(run)))
    return [c for c in out if not (isinstance(c, Literal) and not c.text)]


@dataclass
class _Frame:
    children: Iterator[KeySpecNode]
    modifiers: list[str] = field(default_factory=list)


class KeyNormalizer:
    def __init__(self, case_policy: LiteralCasePolicy = LiteralCasePolicy.UPPERCASE_WHEN_MODIFIED) -> None:
        self.case_policy = LiteralCasePolicy(case_policy)

    def normalize(self, root: Any) -> list[KeyAction]:
        node = coerce_key_spec(root)
        if not isinstance(node, Group):
            node = Group((node,))

        actions: list[KeyAction] = []
        stack = [_Frame(iter(coalesce_literals(node.children)))]
        while stack:
            frame = stack[-1]
            child = next(frame.children, None)
            if child is None:
                stack.pop()
                continue

            if isinstance(child, Group):
                stack.append(_Frame(iter(coalesce_literals(child.children))))
            elif isinstance(child, Literal):
                actions.append(self._literal(child.text, _active_modifiers(stack)))
            elif isinstance(child, Named):
                resolved = resolve_alias(child.symbol)
                modifier = modifier_name(resolved)
                if modifier is not None:
                    frame.modifiers.append(modifier)
                else:
                    actions.append(self._named(resolved, _active_modifiers(stack)))
            else:
                raise TypeError(f"Unsupported key specification node: {child!r}")
        return actions

    def to_wire(self, root: Any) -> list[Any]:
        return [action.to_wire() for action in self.normalize(root)]

    def _literal(self, text: str, modifiers: ModifierSet) -> KeyAction:
        if modifiers and self.case_policy is LiteralCasePolicy.UPPERCASE_WHEN_MODIFIED:
            text = text.upper()
        return KeyAction(text=text, modifiers=modifiers)

    def _named(self, resolved: str, modifiers: ModifierSet) -> KeyAction:
        match = _KEYPAD_RE.search(resolved)
        if match:
            return KeyAction(key=match.group(1), modifiers=(KEYPAD, *modifiers))
        return KeyAction(key=key_name(resolved), modifiers=modifiers)


def _active_modifiers(stack: list[_Frame]) -> ModifierSet:
    seen: dict[str, None] = {}
    for frame in stack:
        for modifier in frame.modifiers:
            seen.setdefault(modifier, None)
    return tuple(seen)


def normalize_keys(root: Any, case_policy: LiteralCasePolicy = LiteralCasePolicy.UPPERCASE_WHEN_MODIFIED) -> list[KeyAction]:
    return KeyNormalizer(case_policy).normalize(root)


__all__ = [
    "KEYPAD",
    "KEY_ALIASES",
    "MODIFIERS",
    "Group",
    "KeyAction",
    "KeyNormalizer",
    "KeySpecNode",
    "Literal",
    "LiteralCasePolicy",
    "ModifierSet",
    "Named",
    "coalesce_literals",
    "coerce_key_spec",
    "key_name",
    "modifier_name",
    "normalize_keys",
    "resolve_alias",
]
