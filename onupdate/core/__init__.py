from onupdate.core.document import Document
from onupdate.core.connection import connect, disconnect, get_database, get_client

__all__ = [
    "Document",
    "connect",
    "disconnect",
    "get_database",
    "get_client",
]
