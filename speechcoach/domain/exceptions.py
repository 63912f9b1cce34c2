from __future__ import annotations


class AnalysisRequestError(Exception):
    """Raised when an analysis request cannot be served as submitted.

    Covers client input errors (400) and server configuration errors (500).
    """

    def __init__(self, message: str, *, status_code: int = 400, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class ModelOutputError(Exception):
    """Raised when the model's reply violates the evaluation output contract."""

    status_code = 502

    def __init__(self, message: str, *, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
