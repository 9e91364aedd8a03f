"""
Payout Views - Creator Platform

API Endpoints:
- GET /api/payouts/balance/                    balance page props (?page=)
- GET /api/payouts/<payment_id>/               one payout period
- GET /api/payouts/<payment_id>/export.csv     payout CSV download

Author: CP Development Team
Version: 1.0.0
"""

import logging

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsSellerTeamMember, seller_context_for_request
from core.policies import PayoutPolicy
from payouts.exports import PayoutCsvExport
from payouts.models import Payment
from payouts.presenters import BalancePagePresenter

logger = logging.getLogger(__name__)


class BalancePageView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request):
        pundit_user = seller_context_for_request(request)
        if not PayoutPolicy(pundit_user).index():
            return Response(status=status.HTTP_403_FORBIDDEN)
        presenter = BalancePagePresenter(pundit_user.seller, page=request.query_params.get("page", 1))
        return Response(presenter.balance_page_props())


class PayoutPeriodView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request, external_id):
        pundit_user = seller_context_for_request(request)
        payment = get_object_or_404(Payment, external_id=external_id, user=pundit_user.seller)
        if not PayoutPolicy(pundit_user).index():
            return Response(status=status.HTTP_403_FORBIDDEN)
        return Response(BalancePagePresenter(pundit_user.seller).payout_period_data(payment))


class PayoutExportView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request, external_id):
        pundit_user = seller_context_for_request(request)
        payment = get_object_or_404(Payment, external_id=external_id, user=pundit_user.seller)
        if not PayoutPolicy(pundit_user).export():
            return Response(status=status.HTTP_403_FORBIDDEN)

        buffer = PayoutCsvExport(payment).to_csv()
        response = HttpResponse(buffer.getvalue(), content_type="text/csv")
        filename = f"payout-{payment.payout_period_end_date or payment.external_id}.csv"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        logger.info("Payout %s exported by user %s", payment.external_id, request.user.pk)
        return response
