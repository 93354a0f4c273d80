"""
Donations Package - Monthly Donation Subscriptions
==================================================

This package turns a single donation form submission into a recurring
Stripe billing relationship. It owns no data of its own: every durable
object (product, price, customer, subscription, invoices) lives in Stripe.

Current Scope
--------------------
- One API endpoint (see views.py) that accepts the donor's contact data,
  a monthly amount and a pre-tokenized PaymentMethod id.
- A provisioning service (see provisioning.py) that drives the remote
  calls in a fixed order and stops at the first failure.
- A narrow billing gateway (see billing.py) that hides the `stripe` SDK
  behind six operations so the flow can be exercised with a fake.

Design Rationale
----------------
- No compensation: resources created before a failing step stay in Stripe
  and are cleaned up out-of-band.
- The "invoice payment requires action" error of the subscription call is
  a normal outcome (3-D Secure), not a failure. It is returned as a value.
- The Stripe secret key is injected into the gateway, never set globally.

Structure
---------
- __init__.py     → this file
- apps.py         → App configuration (`DonationsConfig`)
- exceptions.py   → Error hierarchy for validation / provisioning
- billing.py      → Gateway interface, outcome types, Stripe implementation
- provisioning.py → Request model and the orchestration sequence
- serializers.py  → Inbound payload validation (DRF)
- views.py        → `CreateSubscriptionView`
- urls.py         → Routes

Author: Donations Development Team
Date: 2025-09-03
"""
