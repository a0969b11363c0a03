from __future__ import annotations


class SeatingMapError(Exception):
    pass


class ValidationError(SeatingMapError):
    """Bad user input; the edit is rejected and nothing changes."""


class DuplicateNameError(ValidationError):
    pass


class NotFoundError(SeatingMapError):
    pass


class InvalidSeatError(NotFoundError):
    """The addressed section, row or seat does not exist in the layout."""


class InvalidMemberError(NotFoundError):
    pass


class StorageError(SeatingMapError):
    pass


class RemoteBusyError(SeatingMapError):
    """A remote save or load is already running for this session."""
