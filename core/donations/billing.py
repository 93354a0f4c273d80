"""
Billing Gateway (core.donations)
================================

Narrow interface between the provisioning flow and the payment processor.

The provisioning service only needs six remote operations. They are
declared on `BillingGateway`; `StripeBillingGateway` implements them with
the official `stripe` SDK, and tests substitute an in-memory fake.

Subscription creation does not raise for Stripe errors. It returns one of:

- `SubscriptionCreated`         → subscription exists (active, incomplete, ...)
- `SubscriptionRequiresAction`  → subscription exists, first invoice needs
                                  customer authentication (3-D Secure)
- `SubscriptionFailed`          → any other Stripe error, carried as value

Credentials
-----------
The secret key and API version are passed with every request through the
SDK's per-request options, so no process-wide `stripe.api_key` is set.

Author: Donations Development Team
Date: 2025-09-03
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import stripe
from django.conf import settings

from .exceptions import BillingConfigurationError

logger = logging.getLogger(__name__)

# Stripe error code for a subscription whose first invoice needs SCA
REQUIRES_ACTION_CODE = "invoice_payment_intent_requires_action"


# ---------- subscription outcomes ----------


@dataclass(frozen=True)
class SubscriptionCreated:
    status: str
    subscription_id: str
    client_secret: Optional[str] = None


@dataclass(frozen=True)
class SubscriptionRequiresAction:
    subscription_id: Optional[str]
    client_secret: Optional[str]
    status: str = "requires_action"


@dataclass(frozen=True)
class SubscriptionFailed:
    error: Exception


SubscriptionOutcome = Union[
    SubscriptionCreated, SubscriptionRequiresAction, SubscriptionFailed
]


# ---------- interface ----------


class BillingGateway(ABC):
    """
    Remote operations the provisioning flow depends on.

    Every `create_*` method returns the id of the created resource.
    """

    @abstractmethod
    def create_product(self, *, name: str, description: str) -> str:
        ...

    @abstractmethod
    def create_price(
        self, *, product_id: str, unit_amount: int, currency: Optional[str], interval: str
    ) -> str:
        ...

    @abstractmethod
    def create_customer(
        self,
        *,
        name: Optional[str],
        email: Optional[str],
        phone: Optional[str],
        address: Dict[str, Any],
    ) -> str:
        ...

    @abstractmethod
    def attach_payment_method(self, payment_method_id: str, *, customer_id: str) -> None:
        ...

    @abstractmethod
    def set_default_payment_method(self, customer_id: str, *, payment_method_id: str) -> None:
        ...

    @abstractmethod
    def create_subscription(self, *, customer_id: str, price_id: str) -> SubscriptionOutcome:
        ...


# ---------- helpers ----------


def _client_secret_of(subscription: stripe.Subscription) -> Optional[str]:
    """
    Read `latest_invoice.payment_intent.client_secret` from an expanded
    subscription. Returns None when any level is missing or not expanded.

    Stripe objects are read by attribute, they are not dicts.
    """
    invoice = getattr(subscription, "latest_invoice", None)
    if invoice is None or isinstance(invoice, str):
        return None
    payment_intent = getattr(invoice, "payment_intent", None)
    if payment_intent is None or isinstance(payment_intent, str):
        return None
    return getattr(payment_intent, "client_secret", None)


def _requires_action_details(error: stripe.StripeError) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract (subscription_id, client_secret) from a requires-action error.

    Stripe attaches the created subscription and the pending payment
    intent to the error body. The subscription may be an id or an object.
    """
    body = (error.json_body or {}).get("error") or {}
    subscription = body.get("subscription") or {}
    payment_intent = body.get("payment_intent") or {}

    if isinstance(subscription, str):
        subscription_id = subscription
    else:
        subscription_id = subscription.get("id")
    return subscription_id, payment_intent.get("client_secret")


# ---------- stripe implementation ----------


class StripeBillingGateway(BillingGateway):
    """
    `BillingGateway` backed by the `stripe` SDK resource classes.
    """

    def __init__(self, api_key: str, api_version: Optional[str] = None) -> None:
        if not api_key:
            raise BillingConfigurationError()
        self.api_key = api_key
        self.api_version = api_version

    def _request_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"api_key": self.api_key}
        if self.api_version:
            options["stripe_version"] = self.api_version
        return options

    def create_product(self, *, name: str, description: str) -> str:
        product = stripe.Product.create(
            name=name,
            description=description,
            **self._request_options(),
        )
        return product.id

    def create_price(
        self, *, product_id: str, unit_amount: int, currency: Optional[str], interval: str
    ) -> str:
        price = stripe.Price.create(
            unit_amount=unit_amount,
            currency=currency,
            recurring={"interval": interval},
            product=product_id,
            **self._request_options(),
        )
        return price.id

    def create_customer(
        self,
        *,
        name: Optional[str],
        email: Optional[str],
        phone: Optional[str],
        address: Dict[str, Any],
    ) -> str:
        customer = stripe.Customer.create(
            name=name,
            email=email,
            phone=phone,
            address=address,
            **self._request_options(),
        )
        return customer.id

    def attach_payment_method(self, payment_method_id: str, *, customer_id: str) -> None:
        stripe.PaymentMethod.attach(
            payment_method_id,
            customer=customer_id,
            **self._request_options(),
        )

    def set_default_payment_method(self, customer_id: str, *, payment_method_id: str) -> None:
        # Future invoices of the subscription are charged against this card
        stripe.Customer.modify(
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
            **self._request_options(),
        )

    def create_subscription(self, *, customer_id: str, price_id: str) -> SubscriptionOutcome:
        try:
            subscription = stripe.Subscription.create(
                customer=customer_id,
                items=[{"price": price_id}],
                expand=["latest_invoice.payment_intent"],
                **self._request_options(),
            )
        except stripe.StripeError as exc:
            if exc.code == REQUIRES_ACTION_CODE:
                subscription_id, client_secret = _requires_action_details(exc)
                return SubscriptionRequiresAction(
                    subscription_id=subscription_id, client_secret=client_secret
                )
            logger.warning(
                "Subscription create failed for customer %s (code=%s)", customer_id, exc.code
            )
            return SubscriptionFailed(error=exc)

        return SubscriptionCreated(
            status=subscription.status,
            subscription_id=subscription.id,
            client_secret=_client_secret_of(subscription),
        )


def get_billing_gateway() -> BillingGateway:
    """
    Build the gateway for the current request from Django settings.
    """
    return StripeBillingGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        api_version=getattr(settings, "STRIPE_API_VERSION", None),
    )
