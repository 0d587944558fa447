"""Catalog filter: which open jobs a worker is allowed to see and bid on.

A worker is eligible for a job when the job's category is one of the
worker's services and both are in the same city. Eligibility is read from
the worker's current profile on every call, so editing services or city
takes effect immediately.

The listing and the single-job check share one query, so a job that is
listed to a worker is always one the worker may bid on.
"""
from django.db.models import Q

from core.utils import parse_amount
from .models import Job


def _matching_jobs(worker):
    city = (worker.city or '').strip()
    if not city:
        return Job.objects.none()
    return Job.objects.filter(city__iexact=city, category__in=worker.services.all())


def is_eligible(worker, job):
    return _matching_jobs(worker).filter(pk=job.pk).exists()


def list_eligible_jobs(worker, search=None, min_budget=None, max_budget=None):
    """Open jobs matching the worker's services and city, newest first.

    ``min_budget`` keeps jobs whose upper budget reaches it, ``max_budget``
    keeps jobs whose lower budget does not exceed it.
    """
    jobs = _matching_jobs(worker).filter(status='open').select_related('category', 'customer')

    if search:
        search = search.strip()
        jobs = jobs.filter(Q(title__icontains=search) | Q(description__icontains=search))
    if min_budget not in (None, ''):
        jobs = jobs.filter(budget_max__gte=parse_amount(min_budget, 'min_budget'))
    if max_budget not in (None, ''):
        jobs = jobs.filter(budget_min__lte=parse_amount(max_budget, 'max_budget'))

    return jobs.order_by('-created_at', '-id')
