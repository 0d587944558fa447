from django.urls import path
from .views import UserReviewsView

urlpatterns = [
    path('users/<int:user_id>/', UserReviewsView.as_view(), name='user_reviews'),
]
