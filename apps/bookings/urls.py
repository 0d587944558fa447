from django.urls import path
from .views import (
    BookingListView, InboxView, BookingDetailView, CanMessageView, BookingMessagesView, BookingReviewView
)

urlpatterns = [
    path('', BookingListView.as_view(), name='booking_list'),
    path('inbox/', InboxView.as_view(), name='booking_inbox'),
    path('<int:pk>/', BookingDetailView.as_view(), name='booking_detail'),
    path('<int:pk>/can-message/', CanMessageView.as_view(), name='booking_can_message'),
    path('<int:pk>/messages/', BookingMessagesView.as_view(), name='booking_messages'),
    path('<int:pk>/reviews/', BookingReviewView.as_view(), name='booking_review'),
]
