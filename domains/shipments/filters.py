import django_filters

from domains.orders.utils import normalize_order_reference

from .attention import BUCKET_LABELS, bucket_q
from .models import CanonicalStatus, Shipment, TrackingSource


class ShipmentFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(
        field_name="canonical_status", choices=CanonicalStatus.choices
    )
    source = django_filters.ChoiceFilter(
        field_name="tracking_source", choices=TrackingSource.choices
    )
    order_reference = django_filters.CharFilter(method="filter_order_reference")
    attention = django_filters.ChoiceFilter(
        choices=list(BUCKET_LABELS.items()), method="filter_attention"
    )

    class Meta:
        model = Shipment
        fields = ["status", "source", "order_reference", "attention"]

    def filter_order_reference(self, queryset, name, value):
        return queryset.filter(order_reference=normalize_order_reference(value))

    def filter_attention(self, queryset, name, value):
        return queryset.filter(bucket_q(value))
