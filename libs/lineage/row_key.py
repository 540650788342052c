"""RowKey generation for new lineage records."""

from uuid import uuid4

__all__ = ["ROW_KEY_LENGTH", "new_row_key"]

ROW_KEY_LENGTH = 12


def new_row_key() -> str:
    """
    Return a short, URL-safe identifier for a new lineage record.

    The key is the first 12 hex characters of a random UUID (48 bits). Collisions
    are possible past a few million records per partition; the store's unique
    index turns one into a StoreWriteError rather than an overwrite.
    """
    return uuid4().hex[:ROW_KEY_LENGTH]
