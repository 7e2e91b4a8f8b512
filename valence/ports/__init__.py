"""Port interfaces - layer boundary contracts.

    KvStorePort       - key-value persistence (durable or ephemeral backend)
    ExpiringStorePort - KvStorePort plus native per-key expiry (cache only)
"""

from valence.ports.storage_port import ExpiringStorePort, KvStorePort, StoreMode, validate_ttl

__all__ = [
    "ExpiringStorePort",
    "KvStorePort",
    "StoreMode",
    "validate_ttl",
]
