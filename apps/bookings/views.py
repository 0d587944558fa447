from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from . import gate, reviews
from .serializers import (
    BookingSerializer, ConversationSerializer, MessageSerializer, MessageCreateSerializer,
    ReviewSerializer, ReviewCreateSerializer
)


class BookingListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Bookings where the current user is the customer or the worker",
        responses={200: BookingSerializer(many=True)}
    )
    def get(self, request):
        return Response(BookingSerializer(gate.bookings_for_user(request.user), many=True).data)


class BookingDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Booking details, for either party",
        responses={200: BookingSerializer, 403: 'Forbidden', 404: 'Not Found'}
    )
    def get(self, request, pk):
        return Response(BookingSerializer(gate.get_booking(pk, request.user)).data)


class CanMessageView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Whether the current user may message the other party of this booking",
        responses={
            200: openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={'can_message': openapi.Schema(type=openapi.TYPE_BOOLEAN)}
            )
        }
    )
    def get(self, request, pk):
        return Response({'can_message': gate.can_message(request.user.pk, pk)})


class BookingMessagesView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Conversation for a booking, oldest first. Messages from the other party are marked read.",
        responses={200: MessageSerializer(many=True), 403: 'Forbidden', 404: 'Not Found'}
    )
    def get(self, request, pk):
        return Response(MessageSerializer(gate.list_messages(pk, request.user), many=True).data)

    @swagger_auto_schema(
        operation_description="Send a message to the other party of a booking",
        request_body=MessageCreateSerializer,
        responses={201: MessageSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, pk):
        serializer = MessageCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        message = gate.send_message(pk, request.user, serializer.validated_data['body'])
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


class InboxView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description=(
            "The current user's conversations: one entry per booking with the latest message "
            "and the number of unread messages from the other party, most recent first"
        ),
        responses={200: ConversationSerializer(many=True)}
    )
    def get(self, request):
        return Response(ConversationSerializer(gate.inbox(request.user), many=True).data)


class BookingReviewView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Review the other party of a completed booking. Each party can review once.",
        request_body=ReviewCreateSerializer,
        responses={201: ReviewSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        serializer = ReviewCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        review = reviews.submit_review(pk, request.user, **serializer.validated_data)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class UserReviewsView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Reviews a user has received, newest first, with the average rating",
        responses={
            200: openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'reviews': openapi.Schema(type=openapi.TYPE_ARRAY, items=openapi.Schema(type=openapi.TYPE_OBJECT)),
                    'total_reviews': openapi.Schema(type=openapi.TYPE_INTEGER),
                    'average_rating': openapi.Schema(type=openapi.TYPE_NUMBER),
                }
            )
        }
    )
    def get(self, request, user_id):
        received, stats = reviews.reviews_for_user(user_id)
        return Response({'reviews': ReviewSerializer(received, many=True).data, **stats})
