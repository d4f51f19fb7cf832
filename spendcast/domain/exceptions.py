"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Malformed arguments: negative amount, unknown category, bad budget period"""

    pass


class InsufficientDataError(DomainException):
    """Not enough observations for a statistical primitive to produce a value"""

    pass
