from django.urls import path

from .views import PostDetailView, PostsDashboardView

app_name = "posts"

urlpatterns = [
    path("dashboard/", PostsDashboardView.as_view(), name="dashboard"),
    path("<str:external_id>/", PostDetailView.as_view(), name="post-detail"),
]
