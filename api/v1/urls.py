# api/v1/urls.py
from django.urls import include, path

from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    # --- Auth (운영자) ---
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # --- Shipments (운영자) ---
    path("shipments/", include(("domains.shipments.urls", "shipments"))),
    # --- Customer lookup (공개) ---
    path("lookup/", include(("domains.lookup.urls", "lookup"))),
]
