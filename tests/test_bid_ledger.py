"""Tests for bid submission, withdrawal and rejection."""
import pytest

from apps.jobs import ledger, lifecycle
from apps.jobs.models import Bid, Job
from apps.notifications.models import Notification
from apps.users.models import Worker
from core.exceptions import DuplicateBid, Forbidden, InvalidState, JobNotOpen, ValidationError
from tests.conftest import PROPOSAL


class TestSubmit:

    def test_creates_pending_bid(self, job, w1):
        bid = ledger.submit(job, w1, '6000', PROPOSAL, estimated_duration='2 days')

        assert bid.status == 'pending'
        assert bid.amount == 6000
        assert bid.estimated_duration == '2 days'
        assert bid.within_budget

    def test_amount_outside_budget_is_allowed(self, job, w1):
        """The job budget is advisory only."""
        bid = ledger.submit(job, w1, '12000', PROPOSAL)
        assert bid.status == 'pending'
        assert not bid.within_budget

    @pytest.mark.parametrize('amount', ['0', '-50', 'abc', '', None, 'NaN'])
    def test_rejects_bad_amount(self, job, w1, amount):
        with pytest.raises(ValidationError):
            ledger.submit(job, w1, amount, PROPOSAL)
        assert not Bid.objects.exists()

    def test_rejects_short_proposal(self, job, w1):
        with pytest.raises(ValidationError):
            ledger.submit(job, w1, '6000', '  too short  ')

    def test_job_must_be_open(self, job, customer, w1):
        job = lifecycle.cancel(job, customer)
        with pytest.raises(JobNotOpen):
            ledger.submit(job, w1, '0', 'x')

    def test_worker_must_be_eligible(self, job, karachi_worker):
        with pytest.raises(Forbidden):
            ledger.submit(job, karachi_worker, '6000', PROPOSAL)

    def test_customer_cannot_bid_on_own_job(self, job, customer, plumbing):
        own_worker = Worker.objects.create(user=customer, city='Lahore', province='Punjab')
        own_worker.services.set([plumbing])

        with pytest.raises(Forbidden):
            ledger.submit(job, own_worker, '6000', PROPOSAL)

    def test_one_live_bid_per_worker(self, job, w1):
        ledger.submit(job, w1, '6000', PROPOSAL)
        with pytest.raises(DuplicateBid):
            ledger.submit(job, w1, '5500', PROPOSAL)
        assert Bid.objects.filter(job=job, worker=w1).count() == 1

    def test_constraint_catches_duplicate_missed_by_check(self, job, w1, monkeypatch):
        """Two submits racing past the read check still produce one bid."""
        monkeypatch.setattr(ledger, '_has_live_bid', lambda job, worker: False)
        ledger.submit(job, w1, '6000', PROPOSAL)

        with pytest.raises(DuplicateBid):
            ledger.submit(job, w1, '5500', PROPOSAL)
        assert Bid.objects.filter(job=job, worker=w1).count() == 1

    def test_duplicate_rechecked_under_lock(self, job, w1, monkeypatch):
        """A submit that passed the early check is refused once it holds the job lock, before any insert."""
        ledger.submit(job, w1, '6000', PROPOSAL)
        has_live_bid = ledger._has_live_bid
        calls = []

        def early_check_misses(job, worker):
            calls.append(job.pk)
            return False if len(calls) == 1 else has_live_bid(job, worker)

        def no_insert(**kwargs):
            raise AssertionError("a second live bid was inserted")

        monkeypatch.setattr(ledger, '_has_live_bid', early_check_misses)
        monkeypatch.setattr(Bid.objects, 'create', no_insert)

        with pytest.raises(DuplicateBid):
            ledger.submit(job, w1, '5500', PROPOSAL)
        assert len(calls) == 2
        assert Bid.objects.filter(job=job, worker=w1).count() == 1

    def test_stale_open_job_is_rechecked(self, job, w1):
        """A job object read while open is re-read under lock before the insert."""
        stale = lifecycle.get_job(job.id)
        Job.objects.filter(pk=job.pk).update(status='cancelled')

        with pytest.raises(JobNotOpen):
            ledger.submit(stale, w1, '6000', PROPOSAL)

    def test_notifies_customer(self, job, customer, w1, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            bid = ledger.submit(job, w1, '6000', PROPOSAL)

        notification = Notification.objects.get(recipient=customer)
        assert notification.event_type == 'bid-received'
        assert notification.bid_id == bid.id
        assert '6000' in notification.message


class TestWithdraw:

    def test_withdraw_frees_the_slot(self, job, w1):
        first = ledger.submit(job, w1, '6000', PROPOSAL)
        ledger.withdraw(first, w1)
        second = ledger.submit(job, w1, '6500', PROPOSAL)

        first.refresh_from_db()
        assert first.status == 'withdrawn'
        assert second.status == 'pending'
        assert second.id != first.id

    def test_withdraw_leaves_other_bids_alone(self, job, w1, w2):
        mine = ledger.submit(job, w1, '6000', PROPOSAL)
        theirs = ledger.submit(job, w2, '7000', PROPOSAL)
        ledger.withdraw(mine, w1)

        theirs.refresh_from_db()
        assert theirs.status == 'pending'

    def test_only_pending_bids(self, job, w1):
        bid = ledger.submit(job, w1, '6000', PROPOSAL)
        ledger.withdraw(bid, w1)
        with pytest.raises(InvalidState):
            ledger.withdraw(bid, w1)

    def test_only_own_bids(self, job, w1, w2):
        bid = ledger.submit(job, w1, '6000', PROPOSAL)
        with pytest.raises(Forbidden):
            ledger.withdraw(bid, w2)


class TestReject:

    def test_reject_pending_bid(self, job, customer, w1, django_capture_on_commit_callbacks):
        bid = ledger.submit(job, w1, '6000', PROPOSAL)
        with django_capture_on_commit_callbacks(execute=True):
            ledger.reject(bid, customer)

        bid.refresh_from_db()
        assert bid.status == 'rejected'
        assert Notification.objects.filter(recipient=w1.user, event_type='bid-rejected').count() == 1

    def test_rejected_bid_keeps_the_slot(self, job, customer, w1):
        bid = ledger.submit(job, w1, '6000', PROPOSAL)
        ledger.reject(bid, customer)

        with pytest.raises(DuplicateBid):
            ledger.submit(job, w1, '5000', PROPOSAL)

    def test_rejected_bid_cannot_be_withdrawn(self, job, customer, w1):
        bid = ledger.submit(job, w1, '6000', PROPOSAL)
        ledger.reject(bid, customer)
        with pytest.raises(InvalidState):
            ledger.withdraw(bid, w1)

    def test_only_job_owner(self, job, w1, w2):
        bid = ledger.submit(job, w1, '6000', PROPOSAL)
        with pytest.raises(Forbidden):
            ledger.reject(bid, w2.user)

    def test_twice(self, job, customer, w1):
        bid = ledger.submit(job, w1, '6000', PROPOSAL)
        ledger.reject(bid, customer)
        with pytest.raises(InvalidState):
            ledger.reject(bid, customer)


class TestCloseBids:

    def test_closes_only_bids_still_pending(self, job, w1, w2, make_worker):
        first = ledger.submit(job, w1, '6000', PROPOSAL)
        second = ledger.submit(job, w2, '7000', PROPOSAL)
        third = ledger.submit(job, make_worker('w3'), '6500', PROPOSAL)
        snapshot = ledger.lock_pending_bids(job)
        ledger.withdraw(second, w2)

        closed = ledger.close_bids(snapshot)

        assert sorted(bid.pk for bid in closed) == sorted([first.pk, third.pk])
        assert Bid.objects.get(pk=second.pk).status == 'withdrawn'
        assert set(Bid.objects.filter(pk__in=[first.pk, third.pk]).values_list('status', flat=True)) == {'rejected'}

    def test_lock_pending_bids_skips_settled_bids(self, job, customer, w1, w2):
        pending = ledger.submit(job, w1, '6000', PROPOSAL)
        ledger.reject(ledger.submit(job, w2, '7000', PROPOSAL), customer)
        assert [bid.pk for bid in ledger.lock_pending_bids(job)] == [pending.pk]


class TestListing:

    def test_list_for_job_newest_first(self, job, w1, w2):
        older = ledger.submit(job, w1, '6000', PROPOSAL)
        newer = ledger.submit(job, w2, '7000', PROPOSAL)
        assert list(ledger.list_for_job(job)) == [newer, older]

    def test_list_for_worker(self, job, customer, plumbing, w1, w2):
        other_job = lifecycle.create_job(
            customer=customer, category_id=plumbing.id, budget_min=100, budget_max=200,
            city='Lahore', province='Punjab',
        )
        first = ledger.submit(job, w1, '6000', PROPOSAL)
        second = ledger.submit(other_job, w1, '150', PROPOSAL)
        ledger.submit(job, w2, '7000', PROPOSAL)

        assert list(ledger.list_for_worker(w1)) == [second, first]
