from typing import Optional, Any

class BookstoreError(Exception):
    """
    Base exception for the bookstore backend.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ResourceNotFoundError(BookstoreError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class ValidationError(BookstoreError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)

class ConflictError(BookstoreError):
    """
    Raised when an email or mobile is already registered.
    """
    def __init__(self, message: str = "Already registered", details: Optional[Any] = None):
        super().__init__(message, code="CONFLICT", status_code=409, details=details)

class InvalidCredentialsError(BookstoreError):
    def __init__(self, message: str = "Invalid credentials", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_CREDENTIALS", status_code=401, details=details)

class ExpiredOrInvalidOtpError(BookstoreError):
    """
    Raised when no OTP challenge exists, it has expired, or the code is wrong.
    """
    def __init__(self, message: str = "Invalid OTP", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_OTP", status_code=400, details=details)

class AuthenticationError(BookstoreError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", code: str = "AUTHENTICATION_FAILED", details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=401, details=details)

class MissingCredentialError(AuthenticationError):
    def __init__(self, message: str = "No token", details: Optional[Any] = None):
        super().__init__(message, code="MISSING_CREDENTIAL", details=details)

class InvalidTokenError(AuthenticationError):
    def __init__(self, message: str = "Bad token", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_TOKEN", details=details)

class ExternalServiceError(BookstoreError):
    """
    Raised when an external service (payment gateway, SMS, email) fails.
    """
    def __init__(self, message: str = "External service error", code: str = "EXTERNAL_SERVICE_ERROR", details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=502, details=details)

class GatewayError(ExternalServiceError):
    def __init__(self, message: str = "Payment gateway error", details: Optional[Any] = None):
        super().__init__(message, code="GATEWAY_ERROR", details=details)

class DeliveryError(ExternalServiceError):
    def __init__(self, message: str = "Message delivery failed", details: Optional[Any] = None):
        super().__init__(message, code="DELIVERY_ERROR", details=details)

class SignatureMismatchError(BookstoreError):
    """
    Raised when a payment callback signature does not verify.
    """
    def __init__(self, message: str = "Bad sign", details: Optional[Any] = None):
        super().__init__(message, code="SIGNATURE_MISMATCH", status_code=400, details=details)

class DuplicatePaymentError(BookstoreError):
    """
    Raised when a payment id has already been recorded as a purchase.
    """
    def __init__(self, message: str = "Payment already recorded", details: Optional[Any] = None):
        super().__init__(message, code="DUPLICATE_PAYMENT", status_code=409, details=details)

class TotalMismatchError(BookstoreError):
    def __init__(self, message: str = "Total does not match items", details: Optional[Any] = None):
        super().__init__(message, code="TOTAL_MISMATCH", status_code=400, details=details)
