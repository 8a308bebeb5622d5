from __future__ import annotations

from enum import IntEnum
from typing import Optional


class Operation(IntEnum):
    """Operation kinds advertised by the executable interface.

    The base account only performs CALL.
    """

    CALL = 0
    DELEGATECALL = 1
    CREATE = 2
    CREATE2 = 3

    @classmethod
    def parse(cls, v: int) -> Optional["Operation"]:
        """Return the matching kind, or None for an unknown value."""
        try:
            return cls(int(v))
        except (TypeError, ValueError):
            return None
