"""Exception hierarchy for the analysis pipeline and its collaborators."""


class LoanLensError(Exception):
    """Base class for all application errors."""


class ExtractionError(LoanLensError):
    """Document extraction failed. Fatal for an analysis."""


class ValuationError(LoanLensError):
    """Property valuation lookup failed. Recovered by the orchestrator."""


class StoreError(LoanLensError):
    """Persistence store read or write failed."""
