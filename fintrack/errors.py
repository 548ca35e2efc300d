"""Exceptions raised by the accrual engine and the ledger."""


class FinTrackError(Exception):
    pass


class InvalidInvestmentError(FinTrackError, ValueError):
    """An investment violates its construction preconditions."""


class RecordNotFoundError(FinTrackError, LookupError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} {record_id!r} not found")
        self.kind = kind
        self.record_id = record_id


class ClaimError(FinTrackError):
    """
    A claim could not be committed.  Nothing was written; the caller may
    re-query the claimable list and try again.
    """

    def __init__(self, message: str, investment_id: str, period_id: str):
        super().__init__(message)
        self.investment_id = investment_id
        self.period_id = period_id


class AlreadyClaimedError(ClaimError):
    pass


class ClaimNotDueError(ClaimError):
    pass


class ClaimOutOfSequenceError(ClaimError):
    pass
