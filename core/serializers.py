from rest_framework import serializers

from .models import SellerProfile


class SellerSettingsSerializer(serializers.ModelSerializer):
    """Writable seller settings (PATCH /api/settings/)."""

    class Meta:
        model = SellerProfile
        fields = [
            "name",
            "username",
            "currency_type",
            "support_email",
            "refunds_disabled",
            "tipping_enabled",
            "show_currencies_always",
        ]
        extra_kwargs = {"name": {"required": False, "allow_blank": True}}

    def validate_username(self, value):
        value = value.lower()
        if SellerProfile.objects.exclude(pk=self.instance.pk if self.instance else None).filter(username=value).exists():
            raise serializers.ValidationError("This username is already taken.")
        return value
