"""Tests for reviews on completed bookings."""
import pytest

from apps.bookings import reviews
from apps.bookings.models import Review
from apps.jobs import lifecycle
from apps.notifications.models import Notification
from core.exceptions import Forbidden, InvalidState, NotFound, ValidationError


@pytest.fixture
def completed(booking, customer):
    lifecycle.transition(booking.job_id, customer, 'in_progress')
    lifecycle.transition(booking.job_id, customer, 'completed')
    lifecycle.transition(booking.job_id, booking.worker.user, 'completed')
    booking.refresh_from_db()
    return booking


class TestSubmitReview:

    def test_each_party_reviews_the_other(self, completed, customer, w1):
        by_customer = reviews.submit_review(completed.id, customer, 5, comment=' Quick and tidy. ')
        by_worker = reviews.submit_review(completed.id, w1.user, '4')

        assert by_customer.reviewee == w1.user
        assert by_customer.comment == 'Quick and tidy.'
        assert by_worker.reviewee == customer
        assert by_worker.rating == 4

    def test_reviewee_is_notified(self, completed, customer, w1):
        reviews.submit_review(completed.id, customer, 5)
        notification = Notification.objects.get(recipient=w1.user)
        assert notification.event_type == 'review-received'
        assert '5-star' in notification.message

    def test_needs_completed_booking(self, booking, customer):
        with pytest.raises(InvalidState):
            reviews.submit_review(booking.id, customer, 5)

        lifecycle.transition(booking.job_id, customer, 'in_progress')
        lifecycle.transition(booking.job_id, customer, 'completed')
        with pytest.raises(InvalidState):
            reviews.submit_review(booking.id, customer, 5)
        assert not Review.objects.exists()

    def test_one_review_per_party(self, completed, customer):
        reviews.submit_review(completed.id, customer, 5)
        with pytest.raises(InvalidState):
            reviews.submit_review(completed.id, customer, 1)
        assert Review.objects.filter(reviewer=customer).count() == 1

    @pytest.mark.parametrize('rating', [0, 6, 'five', None, True, 4.5])
    def test_rating_range(self, completed, customer, rating):
        with pytest.raises(ValidationError):
            reviews.submit_review(completed.id, customer, rating)

    def test_outsiders_cannot_review(self, completed, w2):
        with pytest.raises(Forbidden):
            reviews.submit_review(completed.id, w2.user, 1)

    def test_unknown_booking(self, db, customer):
        with pytest.raises(NotFound):
            reviews.submit_review(424242, customer, 5)


class TestReviewsForUser:

    def test_received_reviews_and_average(self, completed, customer, w1):
        reviews.submit_review(completed.id, customer, 4)
        reviews.submit_review(completed.id, w1.user, 5)

        received, stats = reviews.reviews_for_user(w1.user_id)
        assert [r.reviewer for r in received] == [customer]
        assert stats == {'total_reviews': 1, 'average_rating': 4.0}

    def test_no_reviews(self, db, customer):
        received, stats = reviews.reviews_for_user(customer.id)
        assert list(received) == []
        assert stats == {'total_reviews': 0, 'average_rating': None}
