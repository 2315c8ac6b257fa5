from __future__ import annotations

import enum
import inspect
import logging
from collections.abc import Collection, Sequence
from typing import Any

from onupdate.lifecycle.observability import QueryEvent, emit_event, is_tracing
from onupdate.tracking.registration import HookRef, RegistrationSnapshot

logger = logging.getLogger(__name__)


def resolve_hooks(registration: RegistrationSnapshot, pending: Collection[str]) -> list[HookRef]:
    """Hooks to fire for the changed fields in ``pending``.

    Fields are visited in registration order, so a hook's position is decided
    by the first tracked field bound to it that changed, whatever order the
    fields were assigned in. Each hook appears at most once.
    """
    hooks: list[HookRef] = []
    for name in registration.tracked_fields:
        if name not in pending:
            continue
        hook = registration.field_hooks.get(name)
        # Compared by equality; callables need not be hashable
        if hook is not None and hook not in hooks:
            hooks.append(hook)
    return hooks


async def invoke(instance: Any, hooks: Sequence[HookRef], pending: list[str]) -> None:
    """Call each hook with ``pending``. The first error stops the dispatch."""
    for hook in hooks:
        logger.debug(
            "Calling on_update hook %s on %s for %s",
            hook.name,
            instance.__class__.__name__,
            pending,
        )
        if hook.is_method:
            result = getattr(instance, hook.target)(list(pending))
        else:
            result = hook.target(list(pending))
        if inspect.isawaitable(result):
            await result


class DispatchState(enum.Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"


class UpdateDispatch:
    """Changed columns of one update, held between its pre and post points."""

    def __init__(self, pending: list[str]) -> None:
        self.pending = pending
        self.state = DispatchState.PENDING

    @classmethod
    def capture_pending(cls, instance: Any) -> UpdateDispatch:
        return cls(list(instance.changed_columns))

    async def dispatch(self, instance: Any, registration: RegistrationSnapshot) -> list[HookRef]:
        """Resolve and run the hooks for this update, exactly once.

        Returns:
            The hooks that were resolved, in call order

        Raises:
            RuntimeError: If this update was already dispatched
        """
        if self.state is DispatchState.DISPATCHED:
            raise RuntimeError("on_update hooks were already dispatched for this update")
        self.state = DispatchState.DISPATCHED

        hooks = resolve_hooks(registration, self.pending)
        if is_tracing():
            emit_event(
                QueryEvent(
                    operation="on_update",
                    collection=getattr(instance, "_collection_name", ""),
                    document_class=instance.__class__.__name__,
                    changed_columns=tuple(self.pending),
                    hooks=tuple(hook.name for hook in hooks),
                )
            )
        await invoke(instance, hooks, self.pending)
        return hooks
