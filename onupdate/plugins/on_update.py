from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel, PrivateAttr

from onupdate.lifecycle.hooks import post_update, pre_update_write
from onupdate.tracking.dispatcher import UpdateDispatch, resolve_hooks
from onupdate.tracking.registration import (
    HookRef,
    OnUpdateOptions,
    RegistrationSnapshot,
    configure,
    get_registration,
    inherit,
)
from onupdate.utils.settings import SettingsResolver

logger = logging.getLogger(__name__)

_FIELDS_MARKER = "_onupdate_fields"


def on_field_update(*fields: str) -> Callable[[Callable], Callable]:
    """Decorator registering a document method as the hook for ``fields``.

    The method is called after an update that changed any of ``fields`` and
    receives the list of changed columns::

        class User(OnUpdateMixin, Document):
            email: str

            @on_field_update("email")
            async def send_confirmation(self, changed: list[str]) -> None:
                ...
    """

    def decorator(fn: Callable) -> Callable:
        setattr(fn, _FIELDS_MARKER, (*getattr(fn, _FIELDS_MARKER, ()), *fields))
        return fn

    return decorator


class OnUpdateMixin(BaseModel):
    """Mixin that calls hooks after updates that change tracked fields.

    Usage: class User(OnUpdateMixin, Document): ...

    Hooks are declared with ``Settings.on_update``, ``@on_field_update`` or
    ``User.on_update(fields=[...], hook=...)``. A subclass starts with a copy
    of its parent's hooks; later declarations on either do not leak across.
    """

    _update_dispatch: Optional[UpdateDispatch] = PrivateAttr(default=None)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        """Called after Pydantic has fully processed the model fields."""
        super().__pydantic_init_subclass__(**kwargs)

        for base in cls.__mro__[1:]:
            if issubclass(base, OnUpdateMixin) and base is not OnUpdateMixin:
                inherit(cls, base)
                break

        for declaration in SettingsResolver.get_on_update_declarations(cls):
            configure(cls, declaration)

        for name, member in vars(cls).items():
            if not inspect.isfunction(member):
                continue
            fields = getattr(member, _FIELDS_MARKER, None)
            if fields is not None:
                configure(cls, OnUpdateOptions.from_declaration(list(fields), name))

    @classmethod
    def on_update(cls, fields: Any = None, hook: Any = None) -> OnUpdateOptions:
        """Call ``hook`` after updates that change any of ``fields``.

        Args:
            fields: Field names to track
            hook: Name of a method on the document, or a callable. Either is
                called with the list of changed columns.

        Raises:
            InvalidConfiguration: If fields or hook are missing or malformed
        """
        return configure(cls, OnUpdateOptions.from_declaration(fields, hook))

    @classmethod
    def on_update_registration(cls) -> RegistrationSnapshot:
        return get_registration(cls)

    def resolve_update_hooks(self) -> list[HookRef]:
        """Hooks the pending update would fire.

        Uses the columns captured at the pre-update point when an update is in
        flight, the current changed columns otherwise.
        """
        if self._update_dispatch is not None:
            pending = self._update_dispatch.pending
        else:
            pending = self.changed_columns
        return resolve_hooks(get_registration(self.__class__), pending)

    @pre_update_write
    def _capture_update_changes(self) -> None:
        self._update_dispatch = UpdateDispatch.capture_pending(self)

    @post_update
    async def _dispatch_update_hooks(self) -> None:
        dispatch, self._update_dispatch = self._update_dispatch, None
        if dispatch is None:
            logger.debug(
                "No captured changes on %s, skipping on_update hooks",
                self.__class__.__name__,
            )
            return
        await dispatch.dispatch(self, get_registration(self.__class__))
