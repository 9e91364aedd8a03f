"""
Analytics Views - Creator Platform

API Endpoints:
- GET /api/analytics/utm-links/                 UTM link table (?query=&page=&sort_key=&sort_direction=)
- GET /api/analytics/utm-links/new/             form context (?copy_from=)
- GET /api/analytics/utm-links/<id>/            one UTM link with stats
- GET /api/analytics/sales/                     sales per day and product (?start=&end=)

Author: CP Development Team
Version: 1.0.0
"""

import datetime
import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from analytics.models import UtmLink
from analytics.presenters import (
    PaginatedUtmLinksPresenter,
    SalesAnalyticsPresenter,
    UtmLinkPresenter,
    with_stats,
)
from core.pagination import sort_from_params
from core.permissions import IsSellerTeamMember, seller_context_for_request
from core.policies import ProductPolicy, UtmLinkPolicy

logger = logging.getLogger(__name__)

DEFAULT_ANALYTICS_DAYS = 30


class UtmLinksView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request):
        pundit_user = seller_context_for_request(request)
        if not UtmLinkPolicy(pundit_user).index():
            return Response(status=status.HTTP_403_FORBIDDEN)
        presenter = PaginatedUtmLinksPresenter(
            pundit_user.seller,
            query=request.query_params.get("query"),
            page=request.query_params.get("page", 1),
            sort=sort_from_params(request.query_params),
        )
        return Response(presenter.props())


class UtmLinkNewView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request):
        pundit_user = seller_context_for_request(request)
        if not UtmLinkPolicy(pundit_user).edit():
            return Response(status=status.HTTP_403_FORBIDDEN)
        presenter = UtmLinkPresenter(pundit_user.seller)
        return Response(presenter.new_page_props(copy_from=request.query_params.get("copy_from")))


class UtmLinkDetailView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request, external_id):
        pundit_user = seller_context_for_request(request)
        utm_link = get_object_or_404(
            with_stats(UtmLink.objects.alive()), external_id=external_id, seller=pundit_user.seller
        )
        if not UtmLinkPolicy(pundit_user, utm_link).index():
            return Response(status=status.HTTP_403_FORBIDDEN)
        return Response(UtmLinkPresenter(pundit_user.seller, utm_link).utm_link_props())


class SalesAnalyticsView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request):
        pundit_user = seller_context_for_request(request)
        if not ProductPolicy(pundit_user).index():
            return Response(status=status.HTTP_403_FORBIDDEN)

        try:
            end = _date_param(request.query_params.get("end")) or datetime.date.today()
            start = _date_param(request.query_params.get("start")) or end - datetime.timedelta(
                days=DEFAULT_ANALYTICS_DAYS - 1
            )
        except ValueError:
            return Response({"detail": "Dates must be YYYY-MM-DD."}, status=status.HTTP_400_BAD_REQUEST)
        if start > end:
            return Response({"detail": "start must not be after end."}, status=status.HTTP_400_BAD_REQUEST)

        return Response(SalesAnalyticsPresenter(pundit_user.seller, start, end).props())


def _date_param(value):
    if not value:
        return None
    return datetime.date.fromisoformat(value)
