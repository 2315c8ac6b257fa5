from onupdate.core import (
    Document,
    connect,
    disconnect,
    get_database,
    get_client,
)
from onupdate.lifecycle import (
    pre_validate,
    pre_save,
    post_save,
    pre_update,
    pre_update_write,
    post_update,
    pre_delete,
    post_delete,
    enable_tracing,
    disable_tracing,
    QueryEvent,
    add_listener,
)
from onupdate.plugins import OnUpdateMixin, on_field_update
from onupdate.tracking import (
    HookRef,
    OnUpdateOptions,
    configure,
    get_registration,
    resolve_hooks,
)
from onupdate.utils import (
    OnUpdateError,
    DocumentNotFound,
    NotConnected,
    InvalidConfiguration,
)

__all__ = [
    # Core
    "Document",
    "connect",
    "disconnect",
    "get_database",
    "get_client",
    # Lifecycle
    "pre_validate",
    "pre_save",
    "post_save",
    "pre_update",
    "pre_update_write",
    "post_update",
    "pre_delete",
    "post_delete",
    "enable_tracing",
    "disable_tracing",
    "QueryEvent",
    "add_listener",
    # On-update hooks
    "OnUpdateMixin",
    "on_field_update",
    "HookRef",
    "OnUpdateOptions",
    "configure",
    "get_registration",
    "resolve_hooks",
    # Utils
    "OnUpdateError",
    "DocumentNotFound",
    "NotConnected",
    "InvalidConfiguration",
]
