from onupdate.utils.exceptions import (
    OnUpdateError,
    DocumentNotFound,
    NotConnected,
    InvalidConfiguration,
)
from onupdate.utils.types import (
    DocumentData,
    FilterSpec,
    DocumentId,
    HookCallable,
    merge_filters,
)

__all__ = [
    "OnUpdateError",
    "DocumentNotFound",
    "NotConnected",
    "InvalidConfiguration",
    "DocumentData",
    "FilterSpec",
    "DocumentId",
    "HookCallable",
    "merge_filters",
]
