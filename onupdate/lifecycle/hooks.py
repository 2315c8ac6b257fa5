from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Lifecycle insertion points
PRE_VALIDATE = "pre_validate"
PRE_SAVE = "pre_save"
POST_SAVE = "post_save"
PRE_UPDATE = "pre_update"
# Runs after every pre_update hook, right before the update is written
PRE_UPDATE_WRITE = "pre_update_write"
POST_UPDATE = "post_update"
PRE_DELETE = "pre_delete"
POST_DELETE = "post_delete"

LIFECYCLE_POINTS = (
    PRE_VALIDATE,
    PRE_SAVE,
    POST_SAVE,
    PRE_UPDATE,
    PRE_UPDATE_WRITE,
    POST_UPDATE,
    PRE_DELETE,
    POST_DELETE,
)

_MARKER = "_onupdate_lifecycle"


def lifecycle_hook(point: str) -> Callable[[Callable], Callable]:
    """Build a decorator that attaches a method to a lifecycle point.

    A method may be attached to several points by stacking decorators.
    """
    if point not in LIFECYCLE_POINTS:
        raise ValueError(f"Unknown lifecycle point: {point!r}")

    def decorator(fn: Callable) -> Callable:
        points = getattr(fn, _MARKER, None)
        if points is None:
            points = []
            setattr(fn, _MARKER, points)
        points.append(point)
        return fn

    return decorator


pre_validate = lifecycle_hook(PRE_VALIDATE)
pre_save = lifecycle_hook(PRE_SAVE)
post_save = lifecycle_hook(POST_SAVE)
pre_update = lifecycle_hook(PRE_UPDATE)
pre_update_write = lifecycle_hook(PRE_UPDATE_WRITE)
post_update = lifecycle_hook(POST_UPDATE)
pre_delete = lifecycle_hook(PRE_DELETE)
post_delete = lifecycle_hook(POST_DELETE)


def collect_hooks(cls: type) -> dict[str, list[str]]:
    """Collect decorated lifecycle methods of ``cls`` by name.

    The MRO is walked from ``object`` down so that base class and mixin
    hooks run before the hooks of the class being defined. An overriding
    method keeps the slot of the method it overrides.
    """
    hooks: dict[str, list[str]] = {point: [] for point in LIFECYCLE_POINTS}

    for klass in reversed(cls.__mro__):
        for name, member in vars(klass).items():
            for point in getattr(member, _MARKER, ()):
                if name not in hooks[point]:
                    hooks[point].append(name)

    return hooks


async def run_hooks(instance: Any, point: str) -> None:
    """Run every hook attached to ``point`` on ``instance`` in order."""
    for method_name in instance.__class__._hooks.get(point, []):
        logger.debug(
            "Running %s hook %s.%s", point, instance.__class__.__name__, method_name
        )
        result = getattr(instance, method_name)()
        if inspect.isawaitable(result):
            await result
