from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from core.exceptions import NotFound
from .models import Notification
from .serializers import NotificationSerializer


class NotificationListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="The current user's notifications, newest first",
        manual_parameters=[
            openapi.Parameter('unread', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN, description="Only unread notifications"),
        ],
        responses={200: NotificationSerializer(many=True)}
    )
    def get(self, request):
        notifications = request.user.notifications.all()
        if request.query_params.get('unread') in ('1', 'true', 'True'):
            notifications = notifications.filter(is_read=False)
        return Response(NotificationSerializer(notifications, many=True).data)


class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Number of unread notifications",
        responses={
            200: openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={'unread_count': openapi.Schema(type=openapi.TYPE_INTEGER)}
            )
        }
    )
    def get(self, request):
        return Response({'unread_count': request.user.notifications.filter(is_read=False).count()})


class NotificationReadView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Mark a notification as read",
        responses={200: NotificationSerializer, 404: 'Not Found'}
    )
    def post(self, request, pk):
        try:
            notification = request.user.notifications.get(pk=pk)
        except Notification.DoesNotExist:
            raise NotFound("Notification not found.")
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=['is_read'])
        return Response(NotificationSerializer(notification).data)
