"""
Current account URL configuration.
"""

from django.urls import path

from apps.current_accounts.views import (
    AmortizationScheduleView,
    CurrentAccountDetailView,
    CurrentAccountListCreateView,
    RecordPaymentView,
)

urlpatterns = [
    path(
        'current-accounts',
        CurrentAccountListCreateView.as_view(),
        name='current-accounts',
    ),
    path(
        'current-accounts/<uuid:account_id>',
        CurrentAccountDetailView.as_view(),
        name='current-account-detail',
    ),
    path(
        'current-accounts/<uuid:account_id>/payments',
        RecordPaymentView.as_view(),
        name='current-account-payments',
    ),
    path(
        'current-accounts/<uuid:account_id>/schedule',
        AmortizationScheduleView.as_view(),
        name='current-account-schedule',
    ),
]
