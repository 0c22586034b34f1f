"""Exceptions raised by the family tree core."""

from enum import Enum


class Violation(str, Enum):
    SELF_PARENT = "self_parent"
    CYCLE = "cycle"
    DUPLICATE_EDGE = "duplicate_edge"
    SELF_SPOUSE = "self_spouse"
    DUPLICATE_SPOUSE = "duplicate_spouse"
    DUPLICATE_LINK = "duplicate_link"


class TreeError(ValueError):
    """Base class for rejected store operations."""


class StructuralViolation(TreeError):
    """A mutation would break a graph invariant; nothing was committed."""

    def __init__(self, reason: Violation, message: str):
        super().__init__(message)
        self.reason = reason


class UnknownReference(TreeError):
    """An operation named an id that is not in the store."""

    def __init__(self, kind: str, ref: str):
        super().__init__(f"{kind} {ref} not found")
        self.kind = kind
        self.ref = ref


class TreeFileError(Exception):
    """A tree file could not be read, parsed or written."""


class SettingsError(Exception):
    """A settings file holds a value that cannot be used."""
