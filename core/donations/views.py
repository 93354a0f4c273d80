"""
Donation Subscription Views (core.donations)
============================================

Endpoints
---------

1. CreateSubscriptionView
   - URL: /api/donations/create-subscription (trailing slash optional)
          /.netlify/functions/create-subscription (legacy frontend path)
   - Method: POST (every other method → 405 "Method Not Allowed")
   - Auth: None (access control belongs to the gateway in front)
   - Body:
       {
           "amount": 500,
           "currency": "usd",
           "donation_by": "Jane Doe",
           "name": "Jane Doe",
           "email": "jane@example.com",
           "phone": "+15551234567",
           "address": {"line1": "1 Main St", "city": "Springfield",
                       "postal_code": "00000", "country": "US"},
           "paymentMethodId": "pm_123"
       }
   - Responses:
       200 {"status", "subscriptionId", "clientSecret"}
       400 {"error": "Invalid amount"} / {"error": "Payment method ID is required"}
       500 {"error": "<message>"} for everything else

Typical Flow
------------
1. Frontend tokenizes the card with Stripe.js (PaymentMethod id).
2. Frontend posts the donation to this endpoint.
3. On `requires_action`, the frontend confirms the payment intent with
   the returned client secret (3-D Secure challenge).

Dependencies
------------
- Django REST Framework (API endpoint, JSON parsing)
- stripe (official Python SDK, behind billing.StripeBillingGateway)

Author: Donations Development Team
Date: 2025-09-03
"""

import logging

from django.http import HttpResponseNotAllowed
from rest_framework import status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .billing import get_billing_gateway
from .exceptions import InvalidDonationRequest, MalformedPayloadError
from .provisioning import DonationRequest, SubscriptionProvisioner
from .serializers import DonationRequestSerializer

logger = logging.getLogger(__name__)


def _error_message(exc: Exception) -> str:
    """
    Message exposed to the caller for an unhandled error.

    Stripe errors carry the processor's own message in `user_message`.
    """
    return getattr(exc, "user_message", None) or getattr(exc, "message", None) or str(exc)


class CreateSubscriptionView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    http_method_names = ["post"]

    def http_method_not_allowed(self, request, *args, **kwargs):
        return HttpResponseNotAllowed(
            ["POST"], "Method Not Allowed", content_type="text/plain"
        )

    def post(self, request):
        try:
            if request.stream is None:
                raise MalformedPayloadError("Request body is empty")
            payload = request.data
            if not isinstance(payload, dict):
                raise MalformedPayloadError()

            serializer = DonationRequestSerializer(data=payload)
            if not serializer.is_valid():
                message = serializer.first_error_message()
                logger.warning("Rejected donation request: %s", message)
                return Response({"error": message}, status=status.HTTP_400_BAD_REQUEST)

            donation = DonationRequest.from_validated_data(serializer.validated_data)
            provisioner = SubscriptionProvisioner(get_billing_gateway())
            result = provisioner.provision(donation)

            return Response(result.to_response_body(), status=status.HTTP_200_OK)

        except InvalidDonationRequest as exc:
            logger.warning("Rejected donation request: %s", exc.to_dict())
            return Response({"error": exc.message}, status=exc.status_code)

        except Exception as exc:
            logger.exception("Donation provisioning failed: %s", exc)
            return Response(
                {"error": _error_message(exc)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
