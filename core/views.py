"""
Settings Views - Creator Platform

API Endpoints:
- GET   /api/settings/   settings page props
- PATCH /api/settings/   update seller settings (owner / admin)

Author: CP Development Team
Version: 1.0.0
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.models import SellerProfile
from core.permissions import IsSellerTeamMember, seller_context_for_request
from core.policies import SettingsPolicy
from core.presenters import SettingsPresenter
from core.serializers import SellerSettingsSerializer

logger = logging.getLogger(__name__)


class SettingsView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request):
        pundit_user = seller_context_for_request(request)
        if not SettingsPolicy(pundit_user).show():
            return Response(status=status.HTTP_403_FORBIDDEN)
        return Response(SettingsPresenter(pundit_user).main_props())

    def patch(self, request):
        pundit_user = seller_context_for_request(request)
        if not SettingsPolicy(pundit_user).update():
            return Response(
                {"detail": "You are not allowed to change these settings."}, status=status.HTTP_403_FORBIDDEN
            )

        profile = SellerProfile.for_user(pundit_user.seller)
        serializer = SellerSettingsSerializer(profile, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response({"success": False, "errors": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()

        logger.info("Settings of seller %s updated by user %s", pundit_user.seller.pk, request.user.pk)
        return Response({"success": True, **SettingsPresenter(pundit_user).main_props()})
