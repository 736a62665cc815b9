"""
Failures raised by the stores and the order processor.

Each class carries the HTTP status it is reported with; the application
registers a single handler that renders them as ``{"detail": message}``.
"""


class StoreError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(StoreError):
    status_code = 404


class ValidationFailed(StoreError):
    status_code = 400


class InsufficientStock(StoreError):
    status_code = 400

    def __init__(self, product_name: str):
        super().__init__(f"Insufficient stock for product: {product_name}")
        self.product_name = product_name


class Unauthorized(StoreError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
