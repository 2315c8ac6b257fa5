from onupdate.plugins.on_update import OnUpdateMixin, on_field_update

__all__ = [
    "OnUpdateMixin",
    "on_field_update",
]
