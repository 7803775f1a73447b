"""Exceptions raised at the query-construction boundary."""


class NoteSiftError(Exception):
    """Base class for notesift errors."""


class QueryValidationError(NoteSiftError, ValueError):
    """User input that cannot become part of a query (empty value, missing name)."""


class EmptyQueryError(QueryValidationError):
    """A query with neither dedicated filters nor a free-text query."""

    def __init__(self, message: str = "No filters specified. Please add at least one."):
        super().__init__(message)
