"""Exceptions raised by the ladder engine."""


class LadderError(Exception):
    """Base exception for ladder engine errors"""

    pass


class ValidationError(LadderError):
    """Submitted scores failed validation; nothing was written"""

    pass


class UnknownFormatError(LadderError):
    """Format id is not in the registry"""

    def __init__(self, format_id: str):
        self.format_id = format_id
        super().__init__(f"Unknown format: {format_id!r}")


class PersistenceError(LadderError):
    """The store rejected a read or write; callers may retry the whole submission"""

    pass


class NotFoundError(LadderError):
    """A league, team or tier slot does not exist"""

    pass
