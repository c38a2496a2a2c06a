from django.urls import path

from .views import (
    RunDueChecksAPI,
    ShipmentDetailAPI,
    ShipmentOpsNoteAPI,
    ShipmentRefreshAPI,
    ShipmentsListAPI,
)

app_name = "shipments"

urlpatterns = [
    # 목록
    path("", ShipmentsListAPI.as_view(), name="shipment-list"),
    # 정적(POST) 엔드포인트: 운송장 경로보다 먼저!
    path("run-checks/", RunDueChecksAPI.as_view(), name="shipment-run-checks"),
    path("<str:tracking_number>/refresh/", ShipmentRefreshAPI.as_view(), name="shipment-refresh"),
    path("<str:tracking_number>/ops/", ShipmentOpsNoteAPI.as_view(), name="shipment-ops"),
    # 상세
    path("<str:tracking_number>/", ShipmentDetailAPI.as_view(), name="shipment-detail"),
]
