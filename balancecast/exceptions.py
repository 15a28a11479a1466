"""
Custom exceptions for BalanceCast.

Purpose
-------
Provides a unified exception hierarchy for the layers that are allowed to
fail: configuration, validation of persisted snapshots, and import/export.
The projection engine itself is total over structurally valid snapshots and
never raises on financial data.

Exception Hierarchy
-------------------
BalanceCastError (base)
├── ConfigurationError - Invalid application settings or parameters
└── ValidationError - Data validation failures
    └── SnapshotFormatError - Unreadable, malformed or schema-invalid snapshot

Usage
-----
>>> from balancecast.exceptions import SnapshotFormatError
>>>
>>> try:
...     snapshot = import_snapshot(path)
... except SnapshotFormatError as e:
...     print(f"Import failed: {e}")
"""


class BalanceCastError(Exception):
    """
    Base exception for all BalanceCast errors.

    All BalanceCast-specific exceptions inherit from this class,
    enabling unified error handling when needed.

    Examples
    --------
    >>> try:
    ...     snapshot = load_snapshot(path)
    ... except BalanceCastError as e:
    ...     logger.error(f"Could not load data: {e}")
    """
    pass


class ConfigurationError(BalanceCastError):
    """
    Invalid configuration or parameters.

    Raised by `balancecast.config.load_settings` when a ``BALANCECAST_*``
    environment variable holds an invalid value.
    """
    pass


class ValidationError(BalanceCastError):
    """
    Data validation failures.

    Raised when input data fails validation checks before it reaches the
    engine (e.g. a loan maturing before it starts).
    """
    pass


class SnapshotFormatError(ValidationError):
    """
    Unreadable or structurally invalid snapshot.

    Raised by the persistence layer when a data file cannot be read, is not
    valid JSON, or does not match the snapshot schema. The message is meant
    to be shown to the user as-is.

    Examples
    --------
    >>> raise SnapshotFormatError("Invalid JSON file")
    """
    pass
