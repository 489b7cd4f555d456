"""
Current account views for the financing engine.

Views are thin; business logic lives in the service layer.
"""

import logging

from django.core.cache import cache
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import failure_response
from apps.current_accounts.caching import (
    cache_ttl,
    detail_cache_key,
    list_cache_key,
)
from apps.current_accounts.serializers import (
    AccountListFilterSerializer,
    CreateCurrentAccountSerializer,
    CurrentAccountDetailSerializer,
    CurrentAccountSerializer,
    PaymentSerializer,
    RecordPaymentSerializer,
    ScheduleRowSerializer,
    UpdateCurrentAccountSerializer,
)
from apps.current_accounts.services import (
    AccountOriginationService,
    CurrentAccountService,
    PaymentLedgerService,
)

logger = logging.getLogger(__name__)


class CurrentAccountPagination(PageNumberPagination):
    """Pagination for the current account list."""
    page_size = 10
    page_size_query_param = 'page_size'
    max_page_size = 100


class CurrentAccountListCreateView(APIView):
    """
    GET  /api/current-accounts
    POST /api/current-accounts

    List current accounts or open a new one for a financed sale.
    """

    def get(self, request):
        """Handle listing, filtered by status, client and organization."""
        cache_key = list_cache_key(request.META.get('QUERY_STRING', ''))
        cached = cache.get(cache_key)
        if cached is not None:
            return Response(cached, status=status.HTTP_200_OK)

        filters = AccountListFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        accounts = CurrentAccountService.list_accounts(**filters.validated_data)

        paginator = CurrentAccountPagination()
        page = paginator.paginate_queryset(accounts, request, view=self)
        serializer = CurrentAccountSerializer(page, many=True)
        data = paginator.get_paginated_response(serializer.data).data

        cache.set(cache_key, data, timeout=cache_ttl())
        return Response(data, status=status.HTTP_200_OK)

    def post(self, request):
        """Handle current account creation."""
        serializer = CreateCurrentAccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AccountOriginationService.create_account(**serializer.validated_data)
        if not result['success']:
            return failure_response(result)

        return Response(
            {
                'message': result['message'],
                'warnings': result['warnings'],
                'account': CurrentAccountSerializer(result['account']).data,
            },
            status=status.HTTP_201_CREATED,
        )


class CurrentAccountDetailView(APIView):
    """
    GET   /api/current-accounts/<account_id>
    PATCH /api/current-accounts/<account_id>

    View an account with its payments, or update its metadata.
    """

    def get(self, request, account_id):
        """Handle viewing a single account."""
        cache_key = detail_cache_key(account_id)
        cached = cache.get(cache_key)
        if cached is not None:
            return Response(cached, status=status.HTTP_200_OK)

        account = CurrentAccountService.get_account(account_id)
        data = CurrentAccountDetailSerializer(account).data

        cache.set(cache_key, data, timeout=cache_ttl())
        return Response(data, status=status.HTTP_200_OK)

    def patch(self, request, account_id):
        """Handle status, notes and reminder updates."""
        serializer = UpdateCurrentAccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        account = CurrentAccountService.update_account(
            account_id, **serializer.validated_data,
        )

        return Response(
            CurrentAccountSerializer(account).data,
            status=status.HTTP_200_OK,
        )


class RecordPaymentView(APIView):
    """
    POST /api/current-accounts/<account_id>/payments

    Apply a received payment to an account.
    """

    def post(self, request, account_id):
        """Handle payment recording."""
        serializer = RecordPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentLedgerService.record_payment(
            account_id=account_id,
            **serializer.validated_data,
        )
        if not result['success']:
            return failure_response(result)

        return Response(
            {
                'message': result['message'],
                'payment': PaymentSerializer(result['payment']).data,
                'account': CurrentAccountSerializer(result['account']).data,
            },
            status=status.HTTP_201_CREATED,
        )


class AmortizationScheduleView(APIView):
    """
    GET /api/current-accounts/<account_id>/schedule

    French amortization schedule of the amount financed.
    """

    def get(self, request, account_id):
        """Handle schedule preview."""
        schedule = CurrentAccountService.get_schedule(account_id)
        serializer = ScheduleRowSerializer(schedule, many=True)

        return Response(
            {
                'account_id': str(account_id),
                'schedule': serializer.data,
            },
            status=status.HTTP_200_OK,
        )
