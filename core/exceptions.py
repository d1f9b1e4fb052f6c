"""Custom exceptions for the application."""


class BudgetAppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400


class ValidationError(BudgetAppError):
    """Raised when data validation fails."""

    status_code = 400


class NotFoundError(BudgetAppError):
    """Raised when a requested resource is not found."""

    status_code = 404


class AuthorizationError(BudgetAppError):
    """Raised when the caller is not a member of the referenced budget."""

    status_code = 403


class PartialPostingFailure(BudgetAppError):
    """
    Raised when a posting fails after earlier postings of the same request
    were already written. Nothing is rolled back; ``report`` says what landed.
    """

    status_code = 502

    def __init__(self, report):
        self.report = report
        posting, error = report.failed[0]
        super().__init__(
            f"Posting to budget {posting.budget_id} failed after "
            f"{len(report.succeeded)} successful posting(s): {error}"
        )
