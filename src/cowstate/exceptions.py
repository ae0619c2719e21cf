"""Exception hierarchy for cowstate.

Everything raised here is a caller contract violation. There is no
recoverable-error category: nothing in the package performs I/O.
"""

from __future__ import annotations


class CowStateError(Exception):
    """Base exception for all cowstate errors."""


class DisposedError(CowStateError, RuntimeError):
    """A cell, channel or container was used after it was disposed."""

    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(f"{what} used after dispose")
