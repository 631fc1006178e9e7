"""
Domain error taxonomy for the scoring service.

Every error raised by the scoring core is a ScoringError. The API layer renders
them through a single exception handler, so services raise and never build HTTP
responses themselves.

- ValidationError: caller-fixable input problems (bad fields, wrong team, sequencing)
- NotFoundError: referenced tournament/match/inning/team/player does not exist
- ConflictError: duplicate ball position or inning number, re-completing a match
- PreconditionError: action attempted in the wrong match/innings state
- TransactionError: storage failure inside a unit of work (safe to retry)
"""
from typing import Any, Dict, Optional


class ScoringError(Exception):
    """Base class for all scoring errors."""

    code = "scoring_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for an API error body."""
        body: Dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(ScoringError):
    code = "validation_error"
    status_code = 400


class NotFoundError(ScoringError):
    code = "not_found"
    status_code = 404


class ConflictError(ScoringError):
    code = "conflict"
    status_code = 409


class PreconditionError(ScoringError):
    code = "precondition_failed"
    status_code = 412


class TransactionError(ScoringError):
    code = "transaction_failed"
    status_code = 500
