class ImportFailure(Exception):
    """Base class for import errors that are reported back to the user."""


class ParseFailure(ImportFailure):
    """Raised when a statement file cannot be read or yields no rows."""


class NoTransactionsFound(ImportFailure):
    """Raised when every parsed row normalizes to a zero amount."""


class RowCommitFailure(Exception):
    """Raised when a single confirmed row cannot be persisted."""


class RateFetchFailure(Exception):
    """Raised when the exchange-rate source cannot be reached or parsed."""
