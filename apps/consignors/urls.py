from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.consignors.views import ConsignorViewSet, MyConsignorProfileView, MyPayoutListView, MyPayoutSummaryView

router = DefaultRouter()
router.register("consignors", ConsignorViewSet, basename="consignor")

urlpatterns = [
    path("consignors/me/", MyConsignorProfileView.as_view(), name="consignor-me"),
    path("consignors/me/payout-summary/", MyPayoutSummaryView.as_view(), name="consignor-me-payout-summary"),
    path("consignors/me/payouts/", MyPayoutListView.as_view(), name="consignor-me-payouts"),
]
urlpatterns += router.urls
