from django.contrib import admin
from django.urls import path, include
from drf_yasg.views import get_schema_view
from drf_yasg import openapi
from rest_framework import permissions

schema_view = get_schema_view(
    openapi.Info(
        title="GWorker Marketplace API",
        default_version='v1',
        description="Jobs, bids, bookings and messaging for the GWorker services marketplace",
    ),
    public=True,
    permission_classes=[permissions.AllowAny],
)

urlpatterns = [
    path('', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('admin/', admin.site.urls),
    path('api/jobs/', include('apps.jobs.urls')),
    path('api/bids/', include('apps.jobs.bid_urls')),
    path('api/bookings/', include('apps.bookings.urls')),
    path('api/reviews/', include('apps.bookings.review_urls')),
    path('api/notifications/', include('apps.notifications.urls')),
]
