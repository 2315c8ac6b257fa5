"""Per-model store of tracked fields and the hooks bound to them.

A :class:`Registration` only ever grows. Each declaration is validated into an
immutable :class:`OnUpdateOptions` and merged in: new fields are appended,
fields seen before keep their position but take the newest hook. Derived
models start from a copy of their parent's registration taken when the
subclass is defined, after which the two evolve independently.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from onupdate.utils.exceptions import InvalidConfiguration
from onupdate.utils.types import HookCallable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookRef:
    """A hook bound to tracked fields: a method name or a callable.

    Method names are looked up on the document when the hook fires, so the
    method may be defined or overridden after the declaration.
    """

    target: str | HookCallable

    @classmethod
    def coerce(cls, value: Any) -> HookRef:
        if isinstance(value, HookRef):
            return value
        if value is None:
            raise InvalidConfiguration("You must provide a hook to call")
        if isinstance(value, str):
            if not value.isidentifier():
                raise InvalidConfiguration(
                    f"hook must be a method name or callable, got {value!r}"
                )
            return cls(value)
        if callable(value):
            return cls(value)
        raise InvalidConfiguration(
            f"hook must be a method name or callable, got {type(value).__name__}"
        )

    @property
    def is_method(self) -> bool:
        return isinstance(self.target, str)

    @property
    def name(self) -> str:
        if self.is_method:
            return self.target
        return getattr(self.target, "__qualname__", repr(self.target))

    def __repr__(self) -> str:
        return f"HookRef({self.name})"


@dataclass(frozen=True)
class OnUpdateOptions:
    """A validated, normalized hook declaration."""

    fields: tuple[str, ...]
    hook: HookRef

    @classmethod
    def from_declaration(cls, fields: Any = None, hook: Any = None) -> OnUpdateOptions:
        """Validate raw ``fields``/``hook`` values.

        Raises:
            InvalidConfiguration: If ``fields`` is not a non-empty sequence of
                names or ``hook`` is missing or of an unsupported type.
        """
        if (
            fields is None
            or isinstance(fields, (str, bytes))
            or not isinstance(fields, Sequence)
        ):
            raise InvalidConfiguration("fields must be a non-empty list of field names")
        for name in fields:
            if name is not None and not isinstance(name, str):
                raise InvalidConfiguration(
                    f"field names must be strings, got {type(name).__name__}"
                )
        normalized = unique_fields(fields)
        if not normalized:
            raise InvalidConfiguration("fields must be a non-empty list of field names")
        return cls(fields=normalized, hook=HookRef.coerce(hook))

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> OnUpdateOptions:
        unknown = set(options) - {"fields", "hook"}
        if unknown:
            raise InvalidConfiguration(
                f"Unknown on_update options: {', '.join(sorted(unknown))}"
            )
        return cls.from_declaration(options.get("fields"), options.get("hook"))

    def entries(self) -> dict[str, HookRef]:
        return dict.fromkeys(self.fields, self.hook)


def unique_fields(fields: Iterable[Any]) -> tuple[Any, ...]:
    """Drop ``None``/empty names and repeats, keeping first occurrences."""
    return tuple(dict.fromkeys(name for name in fields if name is not None and name != ""))


@dataclass(frozen=True)
class RegistrationSnapshot:
    """Read-only view of a registration used at dispatch time."""

    tracked_fields: tuple[str, ...]
    field_hooks: Mapping[str, HookRef]


@dataclass
class Registration:
    """Tracked fields in first-registration order and the hook of each."""

    tracked_fields: list[str] = field(default_factory=list)
    field_hooks: dict[str, HookRef] = field(default_factory=dict)

    def merge(self, fields: Iterable[str], entries: Mapping[str, HookRef]) -> None:
        self.tracked_fields = list(unique_fields([*self.tracked_fields, *fields]))
        self.field_hooks.update(entries)

    def apply(self, options: OnUpdateOptions) -> None:
        self.merge(options.fields, options.entries())

    def inherit(self) -> Registration:
        """Return a copy that shares no containers with this registration."""
        return Registration(list(self.tracked_fields), dict(self.field_hooks))

    def snapshot(self) -> RegistrationSnapshot:
        return RegistrationSnapshot(
            tracked_fields=tuple(self.tracked_fields),
            field_hooks=MappingProxyType(dict(self.field_hooks)),
        )


# Model class -> registration. Mutated at class definition and startup only.
_registrations: dict[type, Registration] = {}


def configure(model: type, options: Mapping[str, Any] | OnUpdateOptions) -> OnUpdateOptions:
    """Validate a declaration and merge it into ``model``'s registration.

    Args:
        model: Document class the hook belongs to
        options: ``{"fields": [...], "hook": ...}`` or prepared options

    Returns:
        The normalized, immutable options that were merged

    Raises:
        InvalidConfiguration: If the declaration is malformed
    """
    if not isinstance(options, OnUpdateOptions):
        if not isinstance(options, Mapping):
            raise InvalidConfiguration(
                f"on_update options must be a mapping, got {type(options).__name__}"
            )
        options = OnUpdateOptions.from_mapping(options)

    registration = _registrations.setdefault(model, Registration())
    registration.apply(options)

    known = getattr(model, "model_fields", None)
    if known is not None:
        for name in options.fields:
            if name not in known:
                logger.warning(
                    "%s tracks '%s' for hook %s but has no such field",
                    model.__name__,
                    name,
                    options.hook.name,
                )

    logger.debug(
        "Registered on_update hook %s for %s fields %s",
        options.hook.name,
        model.__name__,
        list(options.fields),
    )
    return options


def inherit(child: type, parent: type) -> Registration | None:
    """Give ``child`` an independent copy of ``parent``'s registration."""
    registration = _registrations.get(parent)
    if registration is None:
        return None
    copied = registration.inherit()
    _registrations[child] = copied
    return copied


def get_registration(model: type) -> RegistrationSnapshot:
    """Snapshot of ``model``'s registration, empty if it never registered."""
    registration = _registrations.get(model)
    if registration is None:
        return RegistrationSnapshot(tracked_fields=(), field_hooks=MappingProxyType({}))
    return registration.snapshot()
