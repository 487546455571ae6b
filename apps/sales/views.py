from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.common.exceptions import error_response
from apps.common.permissions import RolePermission
from apps.sales.models import Sale
from apps.sales.serializers import RefundCreateSerializer, RefundSerializer, SaleListSerializer, SaleSerializer
from apps.sales.services import record_refund


class SaleViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = (
        Sale.objects.select_related("cashier")
        .prefetch_related("lines__consignor", "refunds__lines", "refunds__processed_by")
        .order_by("-completed_at")
    )
    serializer_class = SaleSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["sales.view"],
        "retrieve": ["sales.view"],
        "refund": ["sales.refund"],
    }

    def get_serializer_class(self):
        if self.action == "list":
            return SaleListSerializer
        return SaleSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        consignor_id = self.request.query_params.get("consignor")
        if consignor_id:
            queryset = queryset.filter(lines__consignor_id=consignor_id).distinct()
        refund_status = self.request.query_params.get("refund_status")
        if refund_status:
            queryset = queryset.filter(refund_status=refund_status.upper())
        return queryset

    @action(detail=True, methods=["post"])
    def refund(self, request, pk=None):
        sale = self.get_object()
        serializer = RefundCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            refund = record_refund(
                sale=sale,
                items=data["items"],
                refund_amount=data["refund_amount"],
                payment_method=data.get("payment_method"),
                actor=request.user,
            )
        except ValueError as exc:
            return error_response("invalid_refund", str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(RefundSerializer(refund).data, status=status.HTTP_201_CREATED)
