from django.urls import path

from .views import CustomerLookupAPI

app_name = "lookup"

urlpatterns = [
    path("", CustomerLookupAPI.as_view(), name="customer-lookup"),
]
