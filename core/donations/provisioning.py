"""
Subscription Provisioning Service
=================================

Drives the fixed sequence of remote calls that turns one donation request
into a Stripe subscription:

    1. product      → "Monthly Donation", described by the donor label
    2. price        → amount / currency, recurring monthly, on that product
    3. customer     → name, email, phone, normalized address
    4. attach       → pre-tokenized PaymentMethod to the new customer
    5. default      → PaymentMethod as default invoice payment method
    6. subscription → customer on price, latest invoice expanded

Each step needs the id produced by an earlier one, so the calls run
strictly in order. The first exception aborts the sequence; nothing that
was already created is rolled back.

Author: Donations Development Team
Date: 2025-09-03
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from django.conf import settings

from .billing import (
    BillingGateway,
    SubscriptionCreated,
    SubscriptionFailed,
    SubscriptionRequiresAction,
)
from .exceptions import InvalidBillingAddress, InvalidDonationRequest

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_NAME = "Monthly Donation"
DEFAULT_DESCRIPTION = "Recurring donation"
DEFAULT_INTERVAL = "month"

INVALID_AMOUNT_MESSAGE = "Invalid amount"
PAYMENT_METHOD_REQUIRED_MESSAGE = "Payment method ID is required"


@dataclass(frozen=True)
class DonationRequest:
    """
    Validated inbound donation. Lives only for the duration of a request.
    """

    amount: int
    payment_method_id: str
    currency: Optional[str] = None
    donation_by: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Any] = None

    @classmethod
    def from_validated_data(cls, data: Mapping[str, Any]) -> "DonationRequest":
        return cls(
            amount=data.get("amount"),
            payment_method_id=data.get("payment_method_id"),
            currency=data.get("currency"),
            donation_by=data.get("donation_by"),
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
        )


@dataclass(frozen=True)
class ProvisioningResult:
    status: str
    subscription_id: Optional[str]
    client_secret: Optional[str] = None

    def to_response_body(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "subscriptionId": self.subscription_id,
            "clientSecret": self.client_secret,
        }


def normalize_address(address: Any) -> Dict[str, Any]:
    """
    Build the Stripe customer address from the request's address object.

    Only `line2` and `state` are defaulted (to an empty string); every
    other field is passed through as given.

    Raises:
        InvalidBillingAddress: if the address is missing or not an object.
    """
    if not isinstance(address, Mapping):
        raise InvalidBillingAddress()

    return {
        "line1": address.get("line1"),
        "line2": address.get("line2") or "",
        "city": address.get("city"),
        "state": address.get("state") or "",
        "postal_code": address.get("postal_code"),
        "country": address.get("country"),
    }


class SubscriptionProvisioner:
    """
    Provision a monthly donation subscription through a `BillingGateway`.

    Args:
        gateway: Remote billing operations (Stripe in production).
        product_name: Name of the recurring product created per request.
        default_description: Product description when no donor label is given.
        interval: Billing interval of the created price.
    """

    def __init__(
        self,
        gateway: BillingGateway,
        *,
        product_name: Optional[str] = None,
        default_description: Optional[str] = None,
        interval: Optional[str] = None,
    ) -> None:
        self.gateway = gateway
        self.product_name = product_name or getattr(
            settings, "DONATION_PRODUCT_NAME", DEFAULT_PRODUCT_NAME
        )
        self.default_description = default_description or getattr(
            settings, "DONATION_DEFAULT_DESCRIPTION", DEFAULT_DESCRIPTION
        )
        self.interval = interval or getattr(
            settings, "DONATION_BILLING_INTERVAL", DEFAULT_INTERVAL
        )

    @staticmethod
    def validate(donation: DonationRequest) -> None:
        """
        Check the request invariants before anything is sent to Stripe.

        Raises:
            InvalidDonationRequest: amount missing / not positive, or no
                payment method id.
        """
        amount = donation.amount
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidDonationRequest(INVALID_AMOUNT_MESSAGE, field="amount")
        if donation.payment_method_id in (None, "", 0):
            raise InvalidDonationRequest(
                PAYMENT_METHOD_REQUIRED_MESSAGE, field="paymentMethodId"
            )

    def provision(self, donation: DonationRequest) -> ProvisioningResult:
        """
        Run the six provisioning steps for one donation.

        Returns:
            ProvisioningResult for both the created and the requires-action
            outcome of the subscription call.

        Raises:
            InvalidDonationRequest: before any remote call, see `validate`.
            Exception: whatever the gateway raised, or the error carried by
                a `SubscriptionFailed` outcome. Earlier steps are not undone.
        """
        self.validate(donation)

        # 1. product
        product_id = self.gateway.create_product(
            name=self.product_name,
            description=donation.donation_by or self.default_description,
        )
        logger.info("Created donation product %s", product_id)

        # 2. price
        price_id = self.gateway.create_price(
            product_id=product_id,
            unit_amount=donation.amount,
            currency=donation.currency,
            interval=self.interval,
        )
        logger.info(
            "Created price %s (%s %s / %s)",
            price_id,
            donation.amount,
            donation.currency,
            self.interval,
        )

        # 3. customer
        customer_id = self.gateway.create_customer(
            name=donation.name,
            email=donation.email,
            phone=donation.phone,
            address=normalize_address(donation.address),
        )
        logger.info("Created customer %s", customer_id)

        # 4. attach + 5. default payment method
        self.gateway.attach_payment_method(
            donation.payment_method_id, customer_id=customer_id
        )
        self.gateway.set_default_payment_method(
            customer_id, payment_method_id=donation.payment_method_id
        )
        logger.info(
            "Set default PaymentMethod %s for customer %s",
            donation.payment_method_id,
            customer_id,
        )

        # 6. subscription
        outcome = self.gateway.create_subscription(
            customer_id=customer_id, price_id=price_id
        )

        if isinstance(outcome, SubscriptionFailed):
            raise outcome.error

        if isinstance(outcome, SubscriptionRequiresAction):
            logger.warning(
                "Subscription %s requires customer authentication",
                outcome.subscription_id,
            )
        elif isinstance(outcome, SubscriptionCreated):
            logger.info(
                "Created subscription %s (status=%s)",
                outcome.subscription_id,
                outcome.status,
            )

        return ProvisioningResult(
            status=outcome.status,
            subscription_id=outcome.subscription_id,
            client_secret=outcome.client_secret,
        )
