"""
Donation Provisioning Exceptions

Exception classes raised while validating a donation request or while
provisioning its subscription. Stripe's own errors are not wrapped: they
propagate as `stripe.StripeError` subclasses and are translated to an HTTP
response by the view.

Author: Donations Development Team
Version: 1.0.0
"""

from typing import Optional, Dict, Any


class DonationError(Exception):
    """
    Base exception class for all donation related errors.

    Attributes:
        message (str): Human-readable error message, returned to the caller
        status_code (int): HTTP status code the view answers with
        error_code (Optional[str]): Short machine-readable identifier
        details (Dict[str, Any]): Additional error details for logging
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for logging.
        """
        return {
            'message': self.message,
            'status_code': self.status_code,
            'error_code': self.error_code,
            'details': self.details,
            'exception_type': self.__class__.__name__
        }


class InvalidDonationRequest(DonationError):
    """
    Raised when the inbound request fails local validation.

    Always raised before any remote call is issued, so no Stripe
    resource exists when the caller sees it.
    """

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        details = {'field': field} if field else None
        super().__init__(message, error_code="invalid_request", details=details)


class DonationProvisioningError(DonationError):
    """
    Raised for provisioning failures that do not originate from Stripe.
    """

    status_code = 500


class MalformedPayloadError(DonationProvisioningError):
    """
    Raised when the request body is empty or not a JSON object.
    """

    def __init__(self, message: str = "Request body must be a JSON object") -> None:
        super().__init__(message, error_code="malformed_payload")


class InvalidBillingAddress(DonationProvisioningError):
    """
    Raised when the customer address cannot be built from the request.
    """

    def __init__(self, message: str = "Billing address is required") -> None:
        super().__init__(message, error_code="invalid_address")


class BillingConfigurationError(DonationProvisioningError):
    """
    Raised when the billing gateway is built without a secret key.
    """

    def __init__(self, message: str = "Stripe secret key is not configured") -> None:
        super().__init__(message, error_code="billing_not_configured")
