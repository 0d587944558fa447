from django.urls import path
from .views import WorkerBidListView, BidWithdrawView, BidAcceptView, BidRejectView

urlpatterns = [
    path('mine/', WorkerBidListView.as_view(), name='worker_bids'),
    path('<int:pk>/withdraw/', BidWithdrawView.as_view(), name='bid_withdraw'),
    path('<int:pk>/accept/', BidAcceptView.as_view(), name='bid_accept'),
    path('<int:pk>/reject/', BidRejectView.as_view(), name='bid_reject'),
]
