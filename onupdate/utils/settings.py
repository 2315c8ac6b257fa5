"""Resolution of the inner ``Settings`` class declared on documents."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from onupdate.utils.exceptions import InvalidConfiguration


def _pluralize(name: str) -> str:
    """Naive pluralization for collection names."""
    lower = name.lower()
    if lower.endswith("s"):
        return lower + "es"
    if lower.endswith("y") and not lower.endswith(("ay", "ey", "iy", "oy", "uy")):
        return lower[:-1] + "ies"
    return lower + "s"


class SettingsResolver:
    """Reads document options from an inner ``Settings`` class.

    Only attributes declared on the class's own ``Settings`` are looked at,
    but because ``Settings`` is a normal class attribute a subclass without one
    sees its parent's.
    """

    @staticmethod
    def get_collection_name(cls: type) -> str:
        settings = getattr(cls, "Settings", None)
        if settings and hasattr(settings, "collection"):
            return settings.collection
        return _pluralize(cls.__name__)

    @staticmethod
    def get_connection_alias(cls: type) -> str:
        settings = getattr(cls, "Settings", None)
        if settings and hasattr(settings, "connection_alias"):
            return settings.connection_alias
        return "default"

    @staticmethod
    def get_on_update_declarations(cls: type) -> list[Mapping[str, Any]]:
        """Get on-update declarations from ``Settings.on_update``.

        Only a ``Settings`` class defined directly on ``cls`` is read, so an
        inherited declaration list is not applied a second time on top of the
        registration the subclass already copied from its parent.

        Args:
            cls: Document class

        Returns:
            List of ``{"fields": [...], "hook": ...}`` mappings

        Raises:
            InvalidConfiguration: If ``on_update`` is not a list of mappings
        """
        settings = vars(cls).get("Settings")
        if settings is None or not hasattr(settings, "on_update"):
            return []
        declarations = settings.on_update
        if isinstance(declarations, Mapping):
            declarations = [declarations]
        if not isinstance(declarations, (list, tuple)):
            raise InvalidConfiguration(
                f"{cls.__name__}.Settings.on_update must be a list of mappings"
            )
        for declaration in declarations:
            if not isinstance(declaration, Mapping):
                raise InvalidConfiguration(
                    f"{cls.__name__}.Settings.on_update entries must be mappings, "
                    f"got {type(declaration).__name__}"
                )
        return list(declarations)
