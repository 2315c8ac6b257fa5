from onupdate.tracking.registration import (
    HookRef,
    OnUpdateOptions,
    Registration,
    RegistrationSnapshot,
    configure,
    get_registration,
    inherit,
)
from onupdate.tracking.dispatcher import (
    DispatchState,
    UpdateDispatch,
    invoke,
    resolve_hooks,
)

__all__ = [
    "HookRef",
    "OnUpdateOptions",
    "Registration",
    "RegistrationSnapshot",
    "configure",
    "get_registration",
    "inherit",
    "DispatchState",
    "UpdateDispatch",
    "invoke",
    "resolve_hooks",
]
