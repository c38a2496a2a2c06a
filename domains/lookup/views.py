# domains/lookup/views.py
import logging

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import parsers, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from shared.api_markers import ErrorResponseSerializer

from .identity import InvalidIdentity
from .ratelimit import RateLimited
from .serializers import LookupRequestSerializer, LookupResponseSerializer, PublicShipmentSerializer
from .services import resolve_customer_shipments

logger = logging.getLogger(__name__)


def client_ip(request) -> str:
    if getattr(settings, "LOOKUP_TRUST_FORWARDED_FOR", False):
        fwd = request.META.get("HTTP_X_FORWARDED_FOR", "")
        if fwd:
            return fwd.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "") or "unknown"


# --------------------------------------------------------------------
# POST /api/v1/lookup/
# body: {phone?, email?, order_reference?, tracking_number?}
# 200: {found, mode, shipments} / 400: {error} / 429: {error, retry_after}
# --------------------------------------------------------------------
class CustomerLookupAPI(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    parser_classes = [parsers.JSONParser, parsers.FormParser]

    @extend_schema(
        request=LookupRequestSerializer,
        responses={200: LookupResponseSerializer, 400: ErrorResponseSerializer, 429: ErrorResponseSerializer},
    )
    def post(self, request):
        ser = LookupRequestSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"error": "Invalid lookup request."}, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = resolve_customer_shipments(ser.validated_data, client_ip=client_ip(request))
        except RateLimited as e:
            resp = Response(
                {"error": str(RateLimited.default_detail), "retry_after": e.wait},
                status=status.HTTP_429_TOO_MANY_REQUESTS,
            )
            resp["Retry-After"] = str(e.wait)
            return resp
        except InvalidIdentity as e:
            return Response({"error": str(e.detail)}, status=status.HTTP_400_BAD_REQUEST)

        if not result.found:
            return Response(
                {"found": False, "mode": None, "message": "No orders found", "shipments": []},
                status=status.HTTP_200_OK,
            )
        return Response(
            {
                "found": True,
                "mode": result.mode,
                "shipments": PublicShipmentSerializer(result.shipments, many=True).data,
            },
            status=status.HTTP_200_OK,
        )
