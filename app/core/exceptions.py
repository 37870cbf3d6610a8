"""
Exceptions raised by the expense analysis engine.
"""


class AnalysisError(Exception):
    """Base class for analysis engine errors."""


class DatasetContractViolation(AnalysisError):
    """The dataset handed to the engine is malformed (e.g. end date before start date)."""


class GenerationUnavailable(AnalysisError):
    """The remote narrative could not be produced. Always recovered by the fallback."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
