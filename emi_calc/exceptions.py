"""Custom exceptions for the EMI calculator."""


class EmiCalcError(Exception):
    """Base exception for all EMI calculator errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class OutOfRangeError(EmiCalcError):
    """Raised when one or more inputs fall outside the loan category bounds.

    ``rejections`` holds the :class:`~emi_calc.validator.OutOfRange` records,
    one per offending field.
    """

    def __init__(self, rejections):
        self.rejections = list(rejections)
        details = {r.field: r.message for r in self.rejections}
        fields = ", ".join(details)
        super().__init__(f"Invalid value for {fields}", details)


class InvalidInputError(EmiCalcError, ValueError):
    """Raised when the engine is called with inputs it cannot amortize.

    Callers are expected to screen inputs with the validator first, so this
    points at a bug in the caller rather than at bad user input.
    """
