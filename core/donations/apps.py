"""
Donations AppConfig
===================

Registers the `core.donations` package with Django. The app defines no
models and no signal receivers; it only contributes the subscription
endpoint and its services.

Author: Donations Development Team
Date: 2025-09-03
"""

from django.apps import AppConfig


class DonationsConfig(AppConfig):
    """
    App configuration for the `core.donations` package.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "core.donations"
    label = "donations"
    verbose_name = "Donations"
