"""Errors surfaced to callers of the quote engine."""


class QuoteEngineError(Exception):
    """Base error for quote engine failures."""


class QuoteValidationError(QuoteEngineError):
    """Raised when a quote cannot be saved (missing details, nothing billable)."""


class NotFoundError(QuoteEngineError):
    """Raised when a quote, costing or booking is not in the store."""


class InvalidTransitionError(QuoteEngineError):
    """Raised on a quote or booking status change that is not allowed."""
