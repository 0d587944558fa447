from django.urls import path
from .views import (
    CategoryListView, JobCreateView, EligibleJobListView, CustomerJobListView,
    JobDetailView, JobTransitionView, JobBidsView
)

urlpatterns = [
    path('', JobCreateView.as_view(), name='job_create'),
    path('categories/', CategoryListView.as_view(), name='category_list'),
    path('eligible/', EligibleJobListView.as_view(), name='eligible_jobs'),
    path('mine/', CustomerJobListView.as_view(), name='customer_jobs'),
    path('<int:pk>/', JobDetailView.as_view(), name='job_detail'),
    path('<int:pk>/transition/', JobTransitionView.as_view(), name='job_transition'),
    path('<int:pk>/bids/', JobBidsView.as_view(), name='job_bids'),
]
