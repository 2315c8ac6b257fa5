from onupdate.lifecycle.hooks import (
    pre_validate,
    pre_save,
    post_save,
    pre_update,
    pre_update_write,
    post_update,
    pre_delete,
    post_delete,
    lifecycle_hook,
    collect_hooks,
    run_hooks,
)
from onupdate.lifecycle.observability import (
    enable_tracing,
    disable_tracing,
    QueryEvent,
    add_listener,
)

__all__ = [
    "pre_validate",
    "pre_save",
    "post_save",
    "pre_update",
    "pre_update_write",
    "post_update",
    "pre_delete",
    "post_delete",
    "lifecycle_hook",
    "collect_hooks",
    "run_hooks",
    "enable_tracing",
    "disable_tracing",
    "QueryEvent",
    "add_listener",
]
