"""Canonical Terraform resource addresses and their text form."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union

InstanceKey = Union[int, str]

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")
_INT_RE = re.compile(r"[0-9]+")


class AddressParseError(ValueError):
    """Raised when address text cannot be parsed."""

    def __init__(self, text: str, reason: str) -> None:
        super().__init__(f"Invalid resource address {text!r}: {reason}")
        self.text = text
        self.reason = reason


def _check_key(key: Optional[InstanceKey]) -> None:
    if key is None:
        return
    if isinstance(key, bool) or not isinstance(key, (int, str)):
        raise TypeError(f"Instance keys must be int or str, got {type(key).__name__}")
    if isinstance(key, int) and key < 0:
        raise ValueError(f"Instance keys must be non-negative, got {key}")


def format_key(key: Optional[InstanceKey]) -> str:
    """Return the bracketed suffix for ``key`` (empty when absent)."""

    if key is None:
        return ""
    if isinstance(key, int):
        return f"[{key}]"
    return f"[{json.dumps(key)}]"


@dataclass(frozen=True, slots=True)
class ModuleStep:
    """One ``module.NAME[KEY]`` hop in a module path."""

    name: str
    key: Optional[InstanceKey] = None

    def __post_init__(self) -> None:
        _check_key(self.key)

    def __str__(self) -> str:
        return f"module.{self.name}{format_key(self.key)}"


@dataclass(frozen=True, slots=True)
class Address:
    """Address of a managed resource instance.

    Two addresses are equal only when every field matches, so an address
    without an instance key is distinct from the same address with key ``0``.
    """

    resource_type: str
    resource_name: str
    module_path: Tuple[ModuleStep, ...] = field(default_factory=tuple)
    instance_key: Optional[InstanceKey] = None

    def __post_init__(self) -> None:
        if not isinstance(self.module_path, tuple):
            object.__setattr__(self, "module_path", tuple(self.module_path))
        _check_key(self.instance_key)

    def __str__(self) -> str:
        return format_address(self)

    @property
    def sort_key(self) -> str:
        return format_address(self)

    @property
    def is_root(self) -> bool:
        return not self.module_path

    @property
    def resource(self) -> "Address":
        """The address of the whole resource, without an instance key."""

        return replace(self, instance_key=None)

    def with_key(self, key: Optional[InstanceKey]) -> "Address":
        return replace(self, instance_key=key)

    def same_resource(self, other: "Address") -> bool:
        return self.resource == other.resource


def format_module_path(module_path: Tuple[ModuleStep, ...]) -> str:
    return ".".join(str(step) for step in module_path)


def format_address(address: Address) -> str:
    """Return canonical text for ``address``; the inverse of :func:`parse_address`."""

    resource = f"{address.resource_type}.{address.resource_name}"
    if address.module_path:
        resource = f"{format_module_path(address.module_path)}.{resource}"
    return resource + format_key(address.instance_key)


class _Scanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def fail(self, reason: str) -> AddressParseError:
        return AddressParseError(self.text, f"{reason} at offset {self.pos}")

    def name(self) -> str:
        match = _NAME_RE.match(self.text, self.pos)
        if not match:
            raise self.fail("expected a name")
        self.pos = match.end()
        return match.group(0)

    def dot(self) -> None:
        if self.text.startswith(".", self.pos):
            self.pos += 1
            return
        raise self.fail("expected '.'")

    def optional_key(self) -> Optional[InstanceKey]:
        if not self.text.startswith("[", self.pos):
            return None
        self.pos += 1

        key: InstanceKey
        if self.text.startswith('"', self.pos):
            key = self._string()
        else:
            match = _INT_RE.match(self.text, self.pos)
            if not match:
                raise self.fail("expected an integer or quoted string key")
            self.pos = match.end()
            key = int(match.group(0))

        if not self.text.startswith("]", self.pos):
            raise self.fail("expected ']'")
        self.pos += 1
        return key

    def _string(self) -> str:
        start = self.pos
        index = start + 1
        while index < len(self.text):
            char = self.text[index]
            if char == "\\":
                index += 2
                continue
            if char == '"':
                break
            index += 1
        else:
            raise self.fail("unterminated string key")

        literal = self.text[start : index + 1]
        try:
            value = json.loads(literal)
        except json.JSONDecodeError as exc:
            raise self.fail("invalid escape in string key") from exc
        self.pos = index + 1
        return value


def _parse_module_steps(scanner: _Scanner, *, allow_resource: bool) -> List[ModuleStep]:
    steps: List[ModuleStep] = []
    while True:
        checkpoint = scanner.pos
        word = scanner.name()
        if word != "module":
            if not allow_resource:
                raise scanner.fail("expected 'module'")
            scanner.pos = checkpoint
            return steps

        scanner.dot()
        steps.append(ModuleStep(scanner.name(), scanner.optional_key()))
        if scanner.at_end():
            if allow_resource:
                raise scanner.fail("missing resource after module path")
            return steps
        scanner.dot()


def parse_address(text: str) -> Address:
    """Parse ``module.a[0].aws_s3_bucket.b["k"]`` style text into an :class:`Address`."""

    if not isinstance(text, str) or not text.strip():
        raise AddressParseError(str(text), "address is empty")

    scanner = _Scanner(text.strip())
    module_path = _parse_module_steps(scanner, allow_resource=True)

    resource_type = scanner.name()
    scanner.dot()
    resource_name = scanner.name()
    instance_key = scanner.optional_key()

    if not scanner.at_end():
        raise scanner.fail("unexpected trailing text")

    return Address(
        resource_type=resource_type,
        resource_name=resource_name,
        module_path=tuple(module_path),
        instance_key=instance_key,
    )


def parse_module_path(text: str | None) -> Tuple[ModuleStep, ...]:
    """Parse a module path such as ``module.net[0].module.sub``; empty means root."""

    if not text:
        return ()

    scanner = _Scanner(text.strip())
    steps = _parse_module_steps(scanner, allow_resource=False)
    if not scanner.at_end():
        raise scanner.fail("unexpected trailing text")
    return tuple(steps)


__all__ = [
    "Address",
    "AddressParseError",
    "InstanceKey",
    "ModuleStep",
    "format_address",
    "format_key",
    "format_module_path",
    "parse_address",
    "parse_module_path",
]
