"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ProviderUnavailableError(DomainException):
    """A data source (obligations, debts, recurring, ...) failed to load"""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source} provider unavailable: {reason}")
        self.source = source
        self.reason = reason


class InvalidAmountError(DomainException):
    """Payment amount is zero, negative or not a number"""

    pass


class NotFoundError(DomainException):
    """Confirmation target does not exist (or is no longer open) in the space"""

    pass


class AlreadySettledError(NotFoundError):
    """Debt has no remaining installments to pay"""

    pass


class InconsistentStateError(DomainException):
    """Record violates a data invariant; it is clamped and reported, never raised to callers"""

    def __init__(self, source: str, record_id: str, detail: str):
        super().__init__(f"{source} {record_id}: {detail}")
        self.source = source
        self.record_id = record_id
        self.detail = detail


class PaymentInProgressError(DomainException):
    """Another confirmation for the same target is still running"""

    pass
