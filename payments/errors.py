class InvalidPaymentRequest(ValueError):
    """A request is missing or violates a required payment field."""

    def __init__(self, error: str, details: str | None = None):
        super().__init__(error)
        self.error = error
        self.details = details


class StripeError(Exception):
    def __init__(self, message: str, code: str = "unknown_error"):
        super().__init__(message)
        self.message = message
        self.code = code


class PayPalError(Exception):
    pass
