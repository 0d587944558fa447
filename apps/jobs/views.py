from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from apps.bookings.serializers import BookingSerializer
from core.exceptions import Forbidden
from core.utils import IsWorker, is_job_party
from . import acceptance, catalog, ledger, lifecycle
from .models import Category, Job
from .serializers import (
    CategorySerializer, JobSerializer, JobCreateSerializer, JobTransitionSerializer,
    BidSerializer, BidSubmitSerializer
)

ERROR_SCHEMA = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    properties={
        'error': openapi.Schema(type=openapi.TYPE_STRING),
        'code': openapi.Schema(type=openapi.TYPE_STRING),
    }
)


class CategoryListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="List active service categories",
        responses={200: CategorySerializer(many=True)}
    )
    def get(self, request):
        categories = Category.objects.filter(is_active=True)
        return Response(CategorySerializer(categories, many=True).data)


class JobCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Post a new job. It starts open and accepts bids from eligible workers.",
        request_body=JobCreateSerializer,
        responses={
            201: JobSerializer,
            400: ERROR_SCHEMA,
            401: 'Unauthorized',
            404: 'Category not found'
        }
    )
    def post(self, request):
        serializer = JobCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        job = lifecycle.create_job(customer=request.user, **serializer.validated_data)
        return Response(JobSerializer(job).data, status=status.HTTP_201_CREATED)


class EligibleJobListView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Open jobs in the worker's city that match one of the worker's services, newest first",
        manual_parameters=[
            openapi.Parameter('search', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Match title or description"),
            openapi.Parameter('min_budget', openapi.IN_QUERY, type=openapi.TYPE_NUMBER),
            openapi.Parameter('max_budget', openapi.IN_QUERY, type=openapi.TYPE_NUMBER),
        ],
        responses={200: JobSerializer(many=True), 400: ERROR_SCHEMA, 403: 'Forbidden'}
    )
    def get(self, request):
        jobs = catalog.list_eligible_jobs(
            request.user.worker,
            search=request.query_params.get('search'),
            min_budget=request.query_params.get('min_budget'),
            max_budget=request.query_params.get('max_budget'),
        )
        return Response(JobSerializer(jobs, many=True).data)


class CustomerJobListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Jobs posted by the current user",
        responses={200: JobSerializer(many=True)}
    )
    def get(self, request):
        jobs = Job.objects.filter(customer=request.user).select_related('category', 'customer')
        job_status = request.query_params.get('status')
        if job_status:
            jobs = jobs.filter(status=job_status)
        return Response(JobSerializer(jobs, many=True).data)


class JobDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Job details. Visible to the customer, the booked worker, bidders and eligible workers.",
        responses={200: JobSerializer, 403: ERROR_SCHEMA, 404: ERROR_SCHEMA}
    )
    def get(self, request, pk):
        job = lifecycle.get_job(pk)
        if not is_job_party(request.user, job):
            worker = getattr(request.user, 'worker', None)
            has_bid = worker is not None and job.bids.filter(worker=worker).exists()
            if not has_bid and not (worker is not None and job.is_open and catalog.is_eligible(worker, job)):
                raise Forbidden("You do not have access to this job.")
        return Response(JobSerializer(job).data)

    @swagger_auto_schema(
        operation_description="Edit an open job. Only the customer who posted it can edit it; omitted fields keep their values.",
        request_body=JobCreateSerializer,
        responses={200: JobSerializer, 400: ERROR_SCHEMA, 403: ERROR_SCHEMA, 404: ERROR_SCHEMA, 409: ERROR_SCHEMA}
    )
    def patch(self, request, pk):
        serializer = JobCreateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        job = lifecycle.update_job(pk, request.user, **serializer.validated_data)
        return Response(JobSerializer(job).data)


class JobTransitionView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description=(
            "Move a job to a new status. The customer can cancel an open job; either party can start work, "
            "confirm completion (the job completes once both have confirmed) or raise a dispute."
        ),
        request_body=JobTransitionSerializer,
        responses={
            200: JobSerializer,
            400: 'Bad Request',
            403: ERROR_SCHEMA,
            404: ERROR_SCHEMA,
            409: ERROR_SCHEMA
        }
    )
    def post(self, request, pk):
        serializer = JobTransitionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        job = lifecycle.transition(
            pk, request.user, data['status'],
            reason=data['reason'], description=data['description'],
        )
        return Response(JobSerializer(lifecycle.get_job(job.pk)).data)


class JobBidsView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Bids on a job, newest first. Only the customer who posted the job can see them.",
        responses={200: BidSerializer(many=True), 403: ERROR_SCHEMA, 404: ERROR_SCHEMA}
    )
    def get(self, request, pk):
        job = lifecycle.get_job(pk)
        if job.customer_id != request.user.pk:
            raise Forbidden("Only the customer who posted this job can see its bids.")
        return Response(BidSerializer(ledger.list_for_job(job), many=True).data)

    @swagger_auto_schema(
        operation_description="Submit a bid on an open job",
        request_body=BidSubmitSerializer,
        responses={
            201: BidSerializer,
            400: ERROR_SCHEMA,
            403: ERROR_SCHEMA,
            404: ERROR_SCHEMA,
            409: ERROR_SCHEMA
        }
    )
    def post(self, request, pk):
        if not IsWorker().has_permission(request, self):
            raise Forbidden(IsWorker.message)
        job = lifecycle.get_job(pk)
        serializer = BidSubmitSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        bid = ledger.submit(job, request.user.worker, **serializer.validated_data)
        return Response(BidSerializer(bid).data, status=status.HTTP_201_CREATED)


class WorkerBidListView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Bids submitted by the current worker, newest first",
        responses={200: BidSerializer(many=True)}
    )
    def get(self, request):
        return Response(BidSerializer(ledger.list_for_worker(request.user.worker), many=True).data)


class BidWithdrawView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Withdraw a pending bid. The worker may bid on the job again afterwards.",
        responses={200: BidSerializer, 403: ERROR_SCHEMA, 404: ERROR_SCHEMA, 409: ERROR_SCHEMA}
    )
    def post(self, request, pk):
        bid = ledger.withdraw(ledger.get_bid(pk), request.user.worker)
        return Response(BidSerializer(bid).data)


class BidAcceptView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description=(
            "Accept a bid. The job becomes assigned, every other pending bid is rejected "
            "and a booking is created, all at once."
        ),
        responses={201: BookingSerializer, 403: ERROR_SCHEMA, 404: ERROR_SCHEMA, 409: ERROR_SCHEMA}
    )
    def post(self, request, pk):
        booking = acceptance.accept_bid(pk, request.user)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)


class BidRejectView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Reject a pending bid",
        responses={200: BidSerializer, 403: ERROR_SCHEMA, 404: ERROR_SCHEMA, 409: ERROR_SCHEMA}
    )
    def post(self, request, pk):
        bid = ledger.reject(ledger.get_bid(pk), request.user)
        return Response(BidSerializer(bid).data)
