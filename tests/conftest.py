import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.jobs import acceptance, ledger, lifecycle
from apps.jobs.models import Category
from apps.users.models import Worker

User = get_user_model()

PROPOSAL = "Ten years fixing residential plumbing, I can start tomorrow morning."


@pytest.fixture
def plumbing(db):
    return Category.objects.create(name='Plumbing', slug='plumbing')


@pytest.fixture
def electrical(db):
    return Category.objects.create(name='Electrical', slug='electrical')


@pytest.fixture
def make_user(db):
    def _make(username, **extra):
        extra.setdefault('email', f'{username}@example.com')
        return User.objects.create_user(username=username, password='s3cret-pass', **extra)
    return _make


@pytest.fixture
def make_worker(make_user, plumbing):
    def _make(username, city='Lahore', services=None, **extra):
        user = make_user(username, **extra)
        worker = Worker.objects.create(user=user, city=city, province='Sindh' if city == 'Karachi' else 'Punjab')
        worker.services.set([plumbing] if services is None else services)
        return worker
    return _make


@pytest.fixture
def customer(make_user):
    return make_user('customer', first_name='Ayesha', last_name='Khan')


@pytest.fixture
def w1(make_worker):
    return make_worker('w1', first_name='Bilal', last_name='Ahmed')


@pytest.fixture
def w2(make_worker):
    return make_worker('w2', first_name='Usman', last_name='Ali')


@pytest.fixture
def karachi_worker(make_worker):
    return make_worker('w_karachi', city='Karachi')


@pytest.fixture
def job(customer, plumbing):
    return lifecycle.create_job(
        customer=customer,
        category_id=plumbing.id,
        budget_min='5000',
        budget_max='8000',
        city='Lahore',
        province='Punjab',
        address='12 Mall Road',
        title='Fix kitchen sink leak',
        description='Water is leaking under the kitchen sink.',
    )


@pytest.fixture
def booking(job, customer, w1, w2):
    """Scenario B: W1 bids 6000, W2 bids 7000, the customer accepts W1."""
    winning = ledger.submit(job, w1, '6000', PROPOSAL)
    ledger.submit(job, w2, '7000', PROPOSAL)
    return acceptance.accept_bid(winning.id, customer)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client(user):
        if isinstance(user, Worker):
            user = user.user
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client
