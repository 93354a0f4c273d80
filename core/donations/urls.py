"""
Donations URL Configuration

API Endpoints:
- /api/donations/create-subscription/ - Provision a monthly donation subscription
  (trailing slash optional, clients post to both forms)

Author: Donations Development Team
Version: 1.0.0
"""

from django.urls import re_path

from .views import CreateSubscriptionView

app_name = "donations"

urlpatterns = [
    re_path(
        r"^create-subscription/?$",
        CreateSubscriptionView.as_view(),
        name="create-subscription",
    ),
]
