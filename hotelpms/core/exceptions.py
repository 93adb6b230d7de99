"""
Domain exceptions raised by the service layer.

Services never import FastAPI; the handlers registered in ``hotelpms.main``
translate these into JSON error responses.
"""


class DomainError(Exception):
    """A business rule was violated (HTTP 400)."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    status_code = 409


class AuthorizationError(DomainError):
    status_code = 403


class UnbalancedTransactionError(DomainError):
    """Debits and credits of a journal entry do not match."""

    def __init__(self, total_debit, total_credit):
        super().__init__(
            f"Transaction is not balanced: debits {total_debit} != credits {total_credit}"
        )
        self.total_debit = total_debit
        self.total_credit = total_credit
