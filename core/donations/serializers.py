"""
Donation Serializers

Validates the JSON body of the create-subscription endpoint. Only the
amount and the payment method id are checked here; everything else is
handed to Stripe as received.

Author: Donations Development Team
Version: 1.0.0
"""

from typing import Optional

from rest_framework import serializers

from .provisioning import INVALID_AMOUNT_MESSAGE, PAYMENT_METHOD_REQUIRED_MESSAGE


class DonationRequestSerializer(serializers.Serializer):
    """
    Serializer for the donation request body.

    Field order matters: when several fields are invalid, the first one
    declared is reported to the caller.
    """

    amount = serializers.IntegerField(
        min_value=1,
        error_messages={
            "required": INVALID_AMOUNT_MESSAGE,
            "null": INVALID_AMOUNT_MESSAGE,
            "invalid": INVALID_AMOUNT_MESSAGE,
            "min_value": INVALID_AMOUNT_MESSAGE,
            "max_string_length": INVALID_AMOUNT_MESSAGE,
        },
    )
    paymentMethodId = serializers.JSONField(
        source="payment_method_id",
        error_messages={
            "required": PAYMENT_METHOD_REQUIRED_MESSAGE,
            "null": PAYMENT_METHOD_REQUIRED_MESSAGE,
            "invalid": PAYMENT_METHOD_REQUIRED_MESSAGE,
        },
    )
    # passed to Stripe untouched, Stripe rejects what it cannot use
    currency = serializers.JSONField(required=False, allow_null=True)
    donation_by = serializers.JSONField(required=False, allow_null=True)
    name = serializers.JSONField(required=False, allow_null=True)
    email = serializers.JSONField(required=False, allow_null=True)
    phone = serializers.JSONField(required=False, allow_null=True)
    address = serializers.JSONField(required=False, allow_null=True)

    def validate_paymentMethodId(self, value):
        if value in ("", 0):
            raise serializers.ValidationError(PAYMENT_METHOD_REQUIRED_MESSAGE)
        return value

    def first_error_message(self) -> Optional[str]:
        """
        Return the message of the first failing field, in declaration order.
        """
        for field_name, messages in self.errors.items():
            if isinstance(messages, dict):
                messages = list(messages.values())
            if not messages:
                continue
            return str(messages[0])
        return None
