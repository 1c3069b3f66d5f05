"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed or invalid"""

    pass


class CategorizationOracleError(DomainException):
    """Hosted categorization service returned an error or is unavailable"""

    pass
