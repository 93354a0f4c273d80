"""
Create-Subscription Endpoint Tests

Drives `CreateSubscriptionView` through the Django test client with the
billing gateway replaced by `FakeBillingGateway`.
"""

import json
from unittest import mock

import stripe
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status

from core.donations.billing import (
    SubscriptionCreated,
    SubscriptionRequiresAction,
    get_billing_gateway,
)

from .fakes import FakeBillingGateway

GATEWAY_FACTORY = "core.donations.views.get_billing_gateway"


def donation_payload(**overrides):
    payload = {
        "amount": 500,
        "currency": "usd",
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+15551234567",
        "address": {
            "line1": "1 Main St",
            "city": "Springfield",
            "postal_code": "00000",
            "country": "US",
        },
        "paymentMethodId": "pm_test_ok",
    }
    payload.update(overrides)
    return payload


class CreateSubscriptionViewTests(TestCase):
    def setUp(self):
        self.url = reverse("donations:create-subscription")
        self.gateway = FakeBillingGateway()
        patcher = mock.patch(GATEWAY_FACTORY, return_value=self.gateway)
        self.gateway_factory = patcher.start()
        self.addCleanup(patcher.stop)

    def post_json(self, payload, url=None):
        return self.client.post(
            url or self.url, data=json.dumps(payload), content_type="application/json"
        )

    # --- method handling ---

    def test_non_post_methods_are_rejected(self):
        for method in ("get", "put", "patch", "delete", "options", "head"):
            response = getattr(self.client, method)(self.url)
            self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED, method)
        self.assertEqual(self.gateway.calls, [])

    def test_method_not_allowed_is_plain_text(self):
        response = self.client.put(
            self.url, data=json.dumps(donation_payload()), content_type="application/json"
        )
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(response.content, b"Method Not Allowed")
        self.assertTrue(response["Content-Type"].startswith("text/plain"))
        self.assertEqual(self.gateway.calls, [])

    # --- validation ---

    def test_invalid_amount(self):
        for amount in (0, -5, None, "abc"):
            response = self.post_json(donation_payload(amount=amount))
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, amount)
            self.assertEqual(response.json(), {"error": "Invalid amount"})

        payload = donation_payload()
        del payload["amount"]
        response = self.post_json(payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json(), {"error": "Invalid amount"})
        self.assertEqual(self.gateway.calls, [])

    def test_missing_payment_method(self):
        for value in ("", None):
            response = self.post_json(donation_payload(paymentMethodId=value))
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.json(), {"error": "Payment method ID is required"})

        payload = donation_payload()
        del payload["paymentMethodId"]
        response = self.post_json(payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json(), {"error": "Payment method ID is required"})
        self.assertEqual(self.gateway.calls, [])

    def test_amount_is_reported_before_payment_method(self):
        response = self.post_json(donation_payload(amount=0, paymentMethodId=""))
        self.assertEqual(response.json(), {"error": "Invalid amount"})

    def test_non_string_contact_field_is_left_to_stripe(self):
        self.gateway.fail_at = "create_customer"
        self.gateway.error = stripe.InvalidRequestError("Invalid string: ['+1555']", "phone")

        with self.assertLogs("core.donations.views", level="ERROR"):
            response = self.post_json(donation_payload(phone=["+1555"]))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "Invalid string: ['+1555']"})
        self.assertEqual(self.gateway.kwargs_for("create_customer")["phone"], ["+1555"])

    def test_contact_fields_are_not_trimmed(self):
        response = self.post_json(donation_payload(name="  Jane  ", donation_by=" Doe "))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.gateway.kwargs_for("create_customer")["name"], "  Jane  ")
        self.assertEqual(self.gateway.kwargs_for("create_product")["description"], " Doe ")

    def test_whitespace_payment_method_reaches_stripe(self):
        self.gateway.fail_at = "attach_payment_method"
        self.gateway.error = stripe.InvalidRequestError("No such PaymentMethod: '   '", "payment_method")

        with self.assertLogs("core.donations.views", level="ERROR"):
            response = self.post_json(donation_payload(paymentMethodId="   "))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "No such PaymentMethod: '   '"})
        self.assertEqual(
            self.gateway.kwargs_for("attach_payment_method")["payment_method_id"], "   "
        )

    def test_failure_log_names_provisioning(self):
        with self.assertLogs("core.donations.views", level="ERROR") as logs:
            self.client.post(self.url, data="", content_type="application/json")

        self.assertIn("Donation provisioning failed", logs.output[0])
        self.assertNotIn("Stripe error", logs.output[0])

    def test_json_array_body_returns_500(self):
        with self.assertLogs("core.donations.views", level="ERROR"):
            response = self.post_json([donation_payload()])

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "Request body must be a JSON object"})

    # --- success paths ---

    def test_active_subscription(self):
        response = self.post_json(donation_payload())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.json(),
            {"status": "active", "subscriptionId": "sub_4", "clientSecret": None},
        )
        self.assertEqual(
            self.gateway.steps,
            [
                "create_product",
                "create_price",
                "create_customer",
                "attach_payment_method",
                "set_default_payment_method",
                "create_subscription",
            ],
        )

    def test_incomplete_subscription_returns_client_secret(self):
        self.gateway.subscription_outcome = SubscriptionCreated(
            status="incomplete", subscription_id="sub_inc", client_secret="pi_inc_secret"
        )
        response = self.post_json(donation_payload())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.json(),
            {"status": "incomplete", "subscriptionId": "sub_inc", "clientSecret": "pi_inc_secret"},
        )

    def test_requires_action(self):
        self.gateway.subscription_outcome = SubscriptionRequiresAction(
            subscription_id="sub_3ds", client_secret="pi_3ds_secret"
        )
        response = self.post_json(donation_payload())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.json(),
            {"status": "requires_action", "subscriptionId": "sub_3ds", "clientSecret": "pi_3ds_secret"},
        )

    def test_trailing_slash_is_optional(self):
        for url in ("/api/donations/create-subscription", "/api/donations/create-subscription/"):
            response = self.post_json(donation_payload(), url=url)
            self.assertEqual(response.status_code, status.HTTP_200_OK, url)
            self.assertEqual(response.json()["status"], "active")

    def test_legacy_function_path(self):
        response = self.post_json(
            donation_payload(), url="/.netlify/functions/create-subscription"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["status"], "active")

    # --- failures ---

    def test_remote_failure_returns_500_and_stops(self):
        self.gateway.fail_at = "create_customer"
        self.gateway.error = stripe.InvalidRequestError("Invalid address", "address")

        with self.assertLogs("core.donations.views", level="ERROR"):
            response = self.post_json(donation_payload())

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "Invalid address"})
        self.assertEqual(self.gateway.steps, ["create_product", "create_price", "create_customer"])

    def test_non_stripe_failure_exposes_message(self):
        self.gateway.fail_at = "attach_payment_method"
        self.gateway.error = RuntimeError("connection reset")

        with self.assertLogs("core.donations.views", level="ERROR"):
            response = self.post_json(donation_payload())

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "connection reset"})
        self.assertNotIn("set_default_payment_method", self.gateway.steps)

    def test_missing_address_returns_500(self):
        payload = donation_payload()
        del payload["address"]

        with self.assertLogs("core.donations.views", level="ERROR"):
            response = self.post_json(payload)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "Billing address is required"})

    def test_malformed_json_returns_500(self):
        with self.assertLogs("core.donations.views", level="ERROR"):
            response = self.client.post(
                self.url, data="{not json", content_type="application/json"
            )

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn("error", response.json())
        self.assertEqual(self.gateway.calls, [])

    def test_empty_body_returns_500(self):
        with self.assertLogs("core.donations.views", level="ERROR"):
            response = self.client.post(self.url, data="", content_type="application/json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "Request body is empty"})

    @override_settings(STRIPE_SECRET_KEY="")
    def test_missing_secret_key_returns_500(self):
        self.gateway_factory.side_effect = get_billing_gateway
        with self.assertLogs("core.donations.views", level="ERROR"):
            response = self.post_json(donation_payload())

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "Stripe secret key is not configured"})

    # --- no deduplication ---

    def test_identical_requests_create_distinct_resources(self):
        first = self.post_json(donation_payload())
        second = self.post_json(donation_payload())

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertNotEqual(first.json()["subscriptionId"], second.json()["subscriptionId"])

        customers = [kwargs for step, kwargs in self.gateway.calls if step == "create_customer"]
        self.assertEqual(len(customers), 2)
        self.assertEqual(self.gateway.steps.count("create_subscription"), 2)
