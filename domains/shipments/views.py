# domains/shipments/views.py
import logging

from django.shortcuts import get_object_or_404
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import parsers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from domains.orders.utils import normalize_tracking_number
from shared.api_markers import EmptyRequestSerializer
from shared.permissions import IsOpsStaff

from .filters import ShipmentFilter
from .models import Shipment
from .serializers import (
    OpsNoteSerializer,           # PATCH /ops 입력
    RunChecksResultSerializer,   # 스케줄러 결과
    ShipmentDetailSerializer,    # 상세 출력
    ShipmentSerializer,          # 목록 출력
)
from .services import refresh_tracking, run_due_checks

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------
# GET /api/v1/shipments/  (목록)  page, size + 필터(status/source/order_reference/attention)
# 응답 형태: { "total": n, "page": p, "size": s, "results": [...] }
# --------------------------------------------------------------------
class ShipmentsListAPI(APIView):
    permission_classes = [IsOpsStaff]
    filter_backends = [DjangoFilterBackend]
    filterset_class = ShipmentFilter

    @extend_schema(
        parameters=[
            OpenApiParameter(name="page", required=False, type=int, description="page number (1-base)"),
            OpenApiParameter(name="size", required=False, type=int, description="page size"),
            OpenApiParameter(name="status", required=False, type=str),
            OpenApiParameter(name="source", required=False, type=str),
            OpenApiParameter(name="order_reference", required=False, type=str),
            OpenApiParameter(name="attention", required=False, type=str, description="ndr_open|ndr_aging|stale|out_for_delivery|rto"),
        ],
        responses={200: ShipmentSerializer(many=True)},
    )
    def get(self, request):
        try:
            page = int(request.query_params.get("page") or 1)
            size = int(request.query_params.get("size") or 20)
        except ValueError:
            return Response({"detail": "page, size 는 정수여야 합니다."}, status=status.HTTP_400_BAD_REQUEST)
        page = max(page, 1)
        size = max(min(size, 100), 1)

        qs = Shipment.objects.order_by("-created_at")
        for backend in self.filter_backends:
            qs = backend().filter_queryset(request, qs, self)

        total = qs.count()
        start = (page - 1) * size
        rows = qs[start : start + size]

        data = ShipmentSerializer(rows, many=True).data
        return Response(
            {"total": total, "page": page, "size": size, "results": data},
            status=status.HTTP_200_OK,
        )


# --------------------------------------------------------------------
# GET /api/v1/shipments/{tracking_number}/  (상세)
# --------------------------------------------------------------------
class ShipmentDetailAPI(APIView):
    permission_classes = [IsOpsStaff]

    @extend_schema(responses={200: ShipmentDetailSerializer})
    def get(self, request, tracking_number: str):
        obj = get_object_or_404(
            Shipment, tracking_number=normalize_tracking_number(tracking_number)
        )
        return Response(ShipmentDetailSerializer(obj).data, status=status.HTTP_200_OK)


# --------------------------------------------------------------------
# POST /api/v1/shipments/{tracking_number}/refresh/
# 단건 즉시 재조회. 운송장이 없거나 두 택배사 모두 실패하면 404
# --------------------------------------------------------------------
class ShipmentRefreshAPI(APIView):
    permission_classes = [IsOpsStaff]

    @extend_schema(request=EmptyRequestSerializer, responses={200: ShipmentDetailSerializer, 404: dict})
    def post(self, request, tracking_number: str):
        shipment = refresh_tracking(tracking_number)
        return Response(ShipmentDetailSerializer(shipment).data, status=status.HTTP_200_OK)


# --------------------------------------------------------------------
# PATCH /api/v1/shipments/{tracking_number}/ops/
# 운영 메모/처리완료 표시만 변경 (상태 필드는 엔진 전용)
# --------------------------------------------------------------------
class ShipmentOpsNoteAPI(APIView):
    parser_classes = [parsers.JSONParser]
    permission_classes = [IsOpsStaff]

    @extend_schema(request=OpsNoteSerializer, responses={200: ShipmentDetailSerializer})
    def patch(self, request, tracking_number: str):
        tn = normalize_tracking_number(tracking_number)
        get_object_or_404(Shipment, tracking_number=tn)

        ser = OpsNoteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        now = timezone.now()
        fields = {"updated_at": now}
        if "ops_note" in ser.validated_data:
            fields["ops_note"] = ser.validated_data["ops_note"]
        if "resolved" in ser.validated_data:
            fields["ops_resolved_at"] = now if ser.validated_data["resolved"] else None
        Shipment.objects.filter(tracking_number=tn).update(**fields)

        return Response(
            ShipmentDetailSerializer(Shipment.objects.get(tracking_number=tn)).data,
            status=status.HTTP_200_OK,
        )


# --------------------------------------------------------------------
# POST /api/v1/shipments/run-checks/
# 스케줄러 수동 실행 → {"checked": n}
# --------------------------------------------------------------------
class RunDueChecksAPI(APIView):
    permission_classes = [IsOpsStaff]

    @extend_schema(request=EmptyRequestSerializer, responses={200: RunChecksResultSerializer})
    def post(self, request):
        result = run_due_checks()
        logger.info("Manual tracking pass by %s: %s", request.user, result)
        return Response(RunChecksResultSerializer(result).data, status=status.HTTP_200_OK)
