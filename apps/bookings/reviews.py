"""Reviews left by the two parties of a completed booking.

Each party may review the other once, and only after both have confirmed
completion. The reviewee is always the other party of the booking.
"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count

from apps.notifications.dispatcher import emit
from apps.notifications.events import REVIEW_RECEIVED, LifecycleEvent
from core.exceptions import InvalidState, ValidationError
from .gate import get_booking
from .models import Review

logger = logging.getLogger(__name__)


def submit_review(booking_id, reviewer, rating, comment=''):
    booking = get_booking(booking_id, reviewer)
    if booking.status != 'completed':
        raise InvalidState("Both parties must confirm completion before leaving a review.")

    if isinstance(rating, bool):
        raise ValidationError("Rating must be between 1 and 5.")
    try:
        rating = int(str(rating).strip())
    except (ValueError, TypeError):
        raise ValidationError("Rating must be between 1 and 5.")
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5.")

    if Review.objects.filter(booking=booking, reviewer=reviewer).exists():
        raise InvalidState("You have already reviewed this booking.")
    try:
        with transaction.atomic():
            review = Review.objects.create(
                booking=booking,
                reviewer=reviewer,
                reviewee_id=booking.other_party_id(reviewer.pk),
                rating=rating,
                comment=(comment or '').strip(),
            )
    except IntegrityError:
        raise InvalidState("You have already reviewed this booking.")

    logger.info(f"User {reviewer.id} reviewed user {review.reviewee_id} on booking {booking.id}: {rating}/5")
    emit([
        LifecycleEvent(
            type=REVIEW_RECEIVED,
            job_id=booking.job_id,
            recipient_id=review.reviewee_id,
            payload={'job_title': booking.job.title, 'rating': rating, 'booking_id': booking.pk},
        )
    ])
    return review


def reviews_for_user(user_id):
    """Reviews a user has received, newest first, with their rating summary."""
    reviews = Review.objects.filter(reviewee_id=user_id).select_related('reviewer', 'booking__job')
    stats = reviews.aggregate(total_reviews=Count('id'), average_rating=Avg('rating'))
    if stats['average_rating'] is not None:
        stats['average_rating'] = round(float(stats['average_rating']), 2)
    return reviews, stats
