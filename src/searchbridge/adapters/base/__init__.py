"""Base client interface — Abstract contract and error taxonomy for search backends."""

from searchbridge.adapters.base.adapter import AdapterHealth, CompletedWrite, SearchClient, WriteHandle
from searchbridge.adapters.base.registry import AdapterRegistry, create_client, default_registry

__all__ = [
    "AdapterHealth",
    "AdapterRegistry",
    "CompletedWrite",
    "SearchClient",
    "WriteHandle",
    "create_client",
    "default_registry",
]
