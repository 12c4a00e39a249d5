"""Caller-side change detection against recorded snapshots.

The store is insert-always. These helpers let a collector decide whether a
freshly observed snapshot is already recorded before calling ``store``.
"""

from __future__ import annotations

from typing import Generic, Protocol, TypeVar

from core.types import HashCount
from store.hashing import ensure_hash

_InfoT = TypeVar("_InfoT")
_KeyT = TypeVar("_KeyT", contravariant=True)


class HashLookup(Protocol, Generic[_KeyT]):
    """Hash queries provided by every hashed snapshot table."""

    def load_latest_hash(self, key: _KeyT) -> str | None:
        """Return the hash of the latest row for a key."""
        ...

    def count_with_key_and_hash(self, key: _KeyT, hash_value: str) -> HashCount:
        """Count rows for a key carrying a given hash."""
        ...


def has_changed(table: HashLookup[_KeyT], key: _KeyT, info: _InfoT) -> bool:
    """Return whether ``info`` differs from the latest recorded snapshot of ``key``.

    Args:
        table: Snapshot table to compare against.
        key: Natural key of the snapshot.
        info: Freshly observed snapshot.

    Returns:
        True when nothing is recorded yet or the latest hash differs.
    """
    latest_hash = table.load_latest_hash(key)
    if latest_hash is None:
        return True
    return latest_hash != getattr(ensure_hash(info), "hash")


def is_recorded(table: HashLookup[_KeyT], key: _KeyT, info: _InfoT) -> bool:
    """Return whether any row of ``key`` ever carried the hash of ``info``."""
    hash_value = getattr(ensure_hash(info), "hash")
    return table.count_with_key_and_hash(key, hash_value).found
