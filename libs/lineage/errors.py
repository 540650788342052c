# =============================================================================
# Lineage Error Kinds
# =============================================================================
# Exception hierarchy shared by the store client, resolvers and dispatcher.
# =============================================================================

"""
Error kinds raised by the lineage engine.

Store failures are translated from the driver at the store boundary and then
propagate unchanged to the caller. Nothing in the engine retries.
"""

__all__ = [
    "LineageError",
    "StoreError",
    "StoreWriteError",
    "ConcurrencyConflictError",
    "StoreTimeoutError",
    "NoCorrelationFoundError",
    "ValidationError",
]


class LineageError(Exception):
    """Base class for all lineage errors."""


class StoreError(LineageError):
    """The record store could not complete a query or write."""


class StoreWriteError(StoreError):
    """An insert or replace was rejected by the store."""


class ConcurrencyConflictError(StoreWriteError):
    """A replace carried a version token that no longer matches the stored record."""


class StoreTimeoutError(StoreError):
    """A store call exceeded its deadline."""


class NoCorrelationFoundError(LineageError, LookupError):
    """No existing record could be found to attach a manifest commit to."""


class ValidationError(LineageError, ValueError):
    """A stage event is missing a required field or is otherwise malformed."""
