class OrderError(Exception):
    """Base class for failures surfaced to API callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidPackage(OrderError):
    pass


class PaymentGatewayError(OrderError):
    pass


class OrderNotFound(OrderError):
    pass


class InvalidEvent(OrderError):
    pass


class ProvisioningError(OrderError):
    pass


class ConfigReadError(OrderError):
    pass
