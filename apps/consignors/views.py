from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.generics import GenericAPIView, ListAPIView
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.exceptions import error_response
from apps.common.permissions import RolePermission
from apps.consignors.models import Consignor
from apps.consignors.serializers import ConsignorSerializer
from apps.payouts.exceptions import PayoutConflict, PayoutValidationError
from apps.payouts.models import Payout
from apps.payouts.selectors import payout_history
from apps.payouts.serializers import ConsignorPayoutSummarySerializer, PayoutRequestSerializer, PayoutSerializer
from apps.payouts.services import record_payout
from apps.payouts.summary import compute_summary, summarize


class ConsignorViewSet(viewsets.ModelViewSet):
    queryset = Consignor.objects.select_related("user")
    serializer_class = ConsignorSerializer
    permission_classes = [RolePermission]
    http_method_names = ["get", "post", "put", "patch", "head", "options"]
    capability_map = {
        "list": ["consignors.view"],
        "retrieve": ["consignors.view"],
        "create": ["consignors.manage"],
        "update": ["consignors.manage"],
        "partial_update": ["consignors.manage"],
        "payout_summary": ["payouts.view"],
        "payout_report": ["payouts.view"],
        "payouts": ["payouts.manage"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        query = self.request.query_params.get("q")
        if query:
            query = query.strip()
            queryset = queryset.filter(Q(name__icontains=query) | Q(consignor_number__icontains=query))
        if self.request.query_params.get("active") in ("1", "true", "True"):
            queryset = queryset.filter(is_active=True)
        return queryset.order_by("consignor_number")

    def perform_create(self, serializer):
        consignor = serializer.save()
        record_audit(
            actor=self.request.user,
            action="consignor.create",
            entity_type="consignor",
            entity_id=consignor.id,
            payload={"commission_split": str(consignor.commission_split)},
        )

    def perform_update(self, serializer):
        before = str(self.get_object().commission_split)
        consignor = serializer.save()
        if str(consignor.commission_split) != before:
            record_audit(
                actor=self.request.user,
                action="consignor.commission_split.update",
                entity_type="consignor",
                entity_id=consignor.id,
                payload={"before": before, "after": str(consignor.commission_split)},
            )

    @action(detail=True, methods=["get"], url_path="payout-summary")
    def payout_summary(self, request, pk=None):
        consignor = self.get_object()
        return Response(ConsignorPayoutSummarySerializer(summarize(consignor)).data)

    @action(detail=True, methods=["get"], url_path="payout-report")
    def payout_report(self, request, pk=None):
        consignor = self.get_object()
        return Response(
            {
                "summary": ConsignorPayoutSummarySerializer(summarize(consignor)).data,
                "history": PayoutSerializer(payout_history(consignor.id), many=True).data,
            }
        )

    @action(detail=True, methods=["get", "post"])
    def payouts(self, request, pk=None):
        consignor = self.get_object()
        if request.method == "GET":
            entries = payout_history(consignor.id).select_related("consignor")
            page = self.paginate_queryset(entries)
            if page is not None:
                return self.get_paginated_response(PayoutSerializer(page, many=True).data)
            return Response(PayoutSerializer(entries, many=True).data)

        serializer = PayoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        summary = compute_summary(consignor.id)
        expected = data.get("expected_pending_amount")
        if expected is not None and expected != summary.pending_amount:
            return error_response(
                "stale_summary",
                "The amount due changed since it was displayed. Review the new summary and try again.",
                status.HTTP_409_CONFLICT,
                {"pending_amount": str(summary.pending_amount)},
            )

        try:
            payout = record_payout(
                consignor_id=consignor.id,
                summary=summary,
                notes=data.get("notes", ""),
                custom_amount=data.get("custom_amount"),
                partial_reason=data.get("partial_reason"),
                balance_disposition=data.get("balance_disposition"),
                actor=request.user,
            )
        except PayoutValidationError as exc:
            return error_response(exc.code, exc.detail, status.HTTP_400_BAD_REQUEST, exc.fields)
        except PayoutConflict as exc:
            return error_response(exc.code, exc.detail, status.HTTP_409_CONFLICT, exc.fields)

        return Response(PayoutSerializer(payout).data, status=status.HTTP_201_CREATED)


class MyConsignorMixin:
    permission_classes = [RolePermission]

    def get_own_consignor(self):
        return Consignor.objects.filter(user=self.request.user).first()

    @staticmethod
    def profile_not_found():
        return error_response(
            "consignor_profile_not_found",
            "No consignor profile is linked to this user.",
            status.HTTP_404_NOT_FOUND,
        )


class MyConsignorProfileView(MyConsignorMixin, GenericAPIView):
    capability_map = {"get": ["consignor.view.own"]}

    def get(self, request, *args, **kwargs):
        consignor = self.get_own_consignor()
        if consignor is None:
            return self.profile_not_found()
        return Response(ConsignorSerializer(consignor).data)


class MyPayoutSummaryView(MyConsignorMixin, GenericAPIView):
    capability_map = {"get": ["payouts.view.own"]}

    def get(self, request, *args, **kwargs):
        consignor = self.get_own_consignor()
        if consignor is None:
            return self.profile_not_found()
        return Response(ConsignorPayoutSummarySerializer(summarize(consignor)).data)


class MyPayoutListView(MyConsignorMixin, ListAPIView):
    capability_map = {"get": ["payouts.view.own"]}
    serializer_class = PayoutSerializer

    def get_queryset(self):
        consignor = self.get_own_consignor()
        if consignor is None:
            return Payout.objects.none()
        return payout_history(consignor.id).select_related("consignor")
