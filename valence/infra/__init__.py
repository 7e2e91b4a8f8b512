"""Infrastructure layer package.

Implements KvStorePort with concrete adapters (MongoDB, Redis).
The gateway receives a store instance; it MUST NOT import adapters directly.
"""
