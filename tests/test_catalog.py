"""Tests for which open jobs a worker can see."""
import pytest

from apps.jobs import catalog, lifecycle
from core.exceptions import ValidationError


def listed_ids(worker, **filters):
    return [job.id for job in catalog.list_eligible_jobs(worker, **filters)]


class TestEligibility:

    def test_same_city_and_service_sees_job(self, job, w1, karachi_worker):
        """A Lahore plumber sees a Lahore plumbing job; a Karachi plumber does not."""
        assert listed_ids(w1) == [job.id]
        assert listed_ids(karachi_worker) == []
        assert catalog.is_eligible(w1, job)
        assert not catalog.is_eligible(karachi_worker, job)

    def test_service_mismatch_hides_job(self, job, make_worker, electrical):
        electrician = make_worker('electrician', services=[electrical])
        assert listed_ids(electrician) == []
        assert not catalog.is_eligible(electrician, job)

    def test_city_match_ignores_case_and_whitespace(self, job, make_worker):
        worker = make_worker('casual', city='  lahore ')
        assert listed_ids(worker) == [job.id]
        assert catalog.is_eligible(worker, job)

    def test_worker_without_city_sees_nothing(self, job, make_worker):
        worker = make_worker('nowhere', city='')
        assert listed_ids(worker) == []
        assert not catalog.is_eligible(worker, job)

    def test_profile_changes_apply_immediately(self, job, karachi_worker):
        karachi_worker.city = 'Lahore'
        karachi_worker.save()
        assert listed_ids(karachi_worker) == [job.id]

        karachi_worker.services.clear()
        assert listed_ids(karachi_worker) == []

    @pytest.mark.parametrize('worker_city', ['Lahore', 'LAHORE', ' lahore ', 'Lahore Cantt', 'Karachi'])
    def test_listing_and_bid_check_agree(self, job, make_worker, worker_city):
        worker = make_worker('w_city', city=worker_city)
        assert (job.id in listed_ids(worker)) == catalog.is_eligible(worker, job)

    def test_job_edit_applies_immediately(self, job, customer, w1, karachi_worker):
        lifecycle.update_job(job.id, customer, city='Karachi', province='Sindh')
        job.refresh_from_db()
        assert listed_ids(w1) == []
        assert not catalog.is_eligible(w1, job)
        assert listed_ids(karachi_worker) == [job.id]
        assert catalog.is_eligible(karachi_worker, job)

    def test_only_open_jobs_are_listed(self, job, customer, w1):
        lifecycle.cancel(job, customer)
        assert listed_ids(w1) == []


class TestListing:

    def test_newest_first(self, job, customer, plumbing, w1):
        newer = lifecycle.create_job(
            customer=customer, category_id=plumbing.id, budget_min=1000, budget_max=2000,
            city='Lahore', province='Punjab', title='Replace shower head',
        )
        assert listed_ids(w1) == [newer.id, job.id]

    @pytest.mark.parametrize('filters, visible', [
        ({'min_budget': '8000'}, True),
        ({'min_budget': '9000'}, False),
        ({'max_budget': '5000'}, True),
        ({'max_budget': '4000'}, False),
        ({'search': 'sink'}, True),
        ({'search': 'LEAKING'}, True),
        ({'search': 'roof'}, False),
    ])
    def test_presentation_filters(self, job, w1, filters, visible):
        assert (job.id in listed_ids(w1, **filters)) is visible

    def test_blank_filters_are_ignored(self, job, w1):
        assert listed_ids(w1, search='', min_budget='', max_budget=None) == [job.id]

    def test_bad_budget_filter(self, job, w1):
        with pytest.raises(ValidationError):
            list(catalog.list_eligible_jobs(w1, min_budget='lots'))
