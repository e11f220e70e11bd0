"""Raid engine error taxonomy."""

from __future__ import annotations


class RaidError(Exception):
    """Base class for raid engine errors."""

    kind = "error"


class RaidValidationError(RaidError, ValueError):
    """Bad raid order; the raid is never instantiated."""

    kind = "validation"


class RaidResourceError(RaidError, RuntimeError):
    """Not enough warriors or supplies; reservations already rolled back."""

    kind = "resources"


class RaidStateError(RaidError, RuntimeError):
    """Operation not valid in the raid's current phase."""

    kind = "state"


class RaidDataIntegrityError(RaidError, LookupError):
    """A settlement referenced by a raid no longer exists."""

    kind = "data_integrity"
