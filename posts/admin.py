from django.contrib import admin

from .models import Post, PostDelivery


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ["name", "seller", "audience_type", "product", "published_at", "shown_on_profile"]
    list_filter = ["audience_type", "shown_on_profile", "allow_comments"]
    search_fields = ["name", "slug", "seller__email"]
    readonly_fields = ["external_id", "created_at", "updated_at"]
    prepopulated_fields = {"slug": ("name",)}


@admin.register(PostDelivery)
class PostDeliveryAdmin(admin.ModelAdmin):
    list_display = ["post", "email", "sent_at", "opened_at"]
    search_fields = ["email", "post__name"]
