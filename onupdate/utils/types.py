from typing import Any, Callable

from bson import ObjectId

DocumentData = dict[str, Any]
FilterSpec = dict[str, Any]
DocumentId = ObjectId | str

# Callable hooks receive the changed columns of the current save
HookCallable = Callable[[list[str]], Any]


def merge_filters(
    base: FilterSpec | None = None,
    override: FilterSpec | None = None,
    **kwargs: Any
) -> FilterSpec:
    """Merge multiple filter dictionaries with proper precedence.

    Args:
        base: Base filter dict
        override: Override filter dict (takes precedence over base)
        **kwargs: Additional filters (highest precedence)

    Returns:
        Merged filter dictionary
    """
    return {**(base or {}), **(override or {}), **kwargs}
