from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.common.permissions import RolePermission
from apps.payouts.models import Payout
from apps.payouts.serializers import ConsignorPayoutSummarySerializer, PayoutSerializer, SummaryTotalsSerializer
from apps.payouts.summary import compute_all_summaries, summary_totals


class PayoutViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Payout.objects.select_related("consignor")
    serializer_class = PayoutSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["payouts.view"],
        "retrieve": ["payouts.view"],
        "summaries": ["payouts.view"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        consignor_id = self.request.query_params.get("consignor")
        if consignor_id:
            queryset = queryset.filter(consignor_id=consignor_id)
        if self.request.query_params.get("partial") in ("1", "true", "True"):
            queryset = queryset.filter(is_partial=True)
        return queryset.order_by("-paid_at", "-created_at")

    @action(detail=False, methods=["get"])
    def summaries(self, request):
        pending_only = request.query_params.get("pending_only") in ("1", "true", "True")
        summaries = compute_all_summaries(query=request.query_params.get("q"), pending_only=pending_only)
        return Response(
            {
                "totals": SummaryTotalsSerializer(summary_totals(summaries)).data,
                "results": ConsignorPayoutSummarySerializer(summaries, many=True).data,
            }
        )
