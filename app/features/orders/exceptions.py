class FulfillmentError(Exception):
    """Base exception for order fulfillment errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(FulfillmentError):
    """Raised when the webhook request is malformed (e.g. no signature header)."""
    status_code = 400


class Misconfigured(FulfillmentError):
    """Raised when the webhook signing secret is not configured."""
    status_code = 400


class VerificationFailed(FulfillmentError):
    """Raised when the signature does not authenticate the payload."""
    status_code = 400


class StockUpdateFailed(FulfillmentError):
    """Raised when a product's stock could not be reconciled."""

    def __init__(self, product_id: str, reason: str = ""):
        message = f"Failed to update stock for product ID {product_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.product_id = product_id


class OrderCreationFailed(FulfillmentError):
    """Raised when the order record could not be created."""

    def __init__(self, checkout_session_id: str, reason: str = ""):
        message = f"Error creating order for checkout session {checkout_session_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.checkout_session_id = checkout_session_id
