"""
Donations Backend URL Configuration

URL Structure:
- /api/donations/: Donation subscription endpoints
- /.netlify/functions/create-subscription: Same endpoint under the path
  existing frontends already post to

Author: Donations Development Team
Version: 1.0.0
"""

from django.urls import include, path

from core.donations.views import CreateSubscriptionView

urlpatterns = [
    path("api/donations/", include("core.donations.urls")),
    path(
        ".netlify/functions/create-subscription",
        CreateSubscriptionView.as_view(),
        name="legacy-create-subscription",
    ),
]
