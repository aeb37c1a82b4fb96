"""
Directory caching package.

Holds the single fetch-through snapshot of all employees. Entries expire after
a fixed TTL and are invalidated explicitly after successful writes.
"""

from .snapshot_cache import CacheEntry, SnapshotCache

__all__ = ["CacheEntry", "SnapshotCache"]
