"""Error taxonomy for fitnotes.

Input-contract errors (EmptyQuery, InvalidPagination, InvalidPeriod,
NoteNotFound, InvalidNote) propagate to the caller. The rest are recovered
where they occur and only show up in logs or in a failed StrategyResult.
"""


class FitnotesError(Exception):
    """Base class for all fitnotes errors."""


class EmptyQuery(FitnotesError):
    """Tag query resolved to zero tags after normalization."""


class InvalidPagination(FitnotesError):
    """limit/offset outside the accepted bounds."""


class InvalidPeriod(FitnotesError):
    """Aggregation period is not a positive whole number of days."""


class NoteNotFound(FitnotesError):
    """No note with the requested id."""

    def __init__(self, note_id: str):
        super().__init__(f"Note with ID {note_id} not found")
        self.note_id = note_id


class InvalidNote(FitnotesError):
    """Note creation input is missing required fields."""


class RepositoryUnavailable(FitnotesError):
    """Backing note file could not be read or parsed."""


class ExtractionDegraded(FitnotesError):
    """A duration strategy could not produce an answer."""


class MalformedNote(FitnotesError):
    """Note has no usable tag list."""


class InvalidQueryMode(FitnotesError):
    """Tag query mode other than 'any' or 'all'."""
