"""Exceptions shared by the data layer and the HTTP handlers.

Services signal bad input with ``ValueError(<code>)`` and missing records with
``KeyError("not_found")``; the only extra case is a uniqueness violation.
"""


class ConflictError(Exception):
    """A record with the same unique key already exists."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code

    def __str__(self) -> str:
        return self.code


class StorageError(Exception):
    """An object-store write that the operation cannot continue without."""


def error_code(exc: BaseException) -> str:
    """Return the snake_case code carried by a ValueError/KeyError/ConflictError."""
    if isinstance(exc, KeyError) and exc.args:
        return str(exc.args[0])
    return str(exc)
