"""Error taxonomy for the history client."""


class QExploreError(Exception):
    """Base class for all q-explore errors."""


class UnknownUnit(QExploreError, ValueError):
    """A unit or unit-system identifier is not in the supported set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown unit: {name!r}")
        self.name = name


class MalformedRecord(QExploreError):
    """A single history record could not be decoded."""


class NotFound(QExploreError, KeyError):
    """No history record exists with the requested id."""

    def __init__(self, record_id: str) -> None:
        super().__init__(record_id)
        self.record_id = record_id

    def __str__(self) -> str:
        return f"History entry not found: {self.record_id}"


class ImportFormatError(QExploreError):
    """A bulk import payload is not the expected container shape."""


class PersistenceUnavailable(QExploreError):
    """The persistent key-value store cannot be read or written."""
