from django.contrib import admin

from apps.current_accounts.models import CurrentAccount, Payment


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    readonly_fields = (
        'amount_paid', 'payment_date', 'payment_method',
        'transaction_reference', 'is_down_payment', 'created_at',
    )
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(CurrentAccount)
class CurrentAccountAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'client', 'motorcycle', 'total_amount', 'remaining_amount',
        'number_of_installments', 'installment_amount', 'payment_frequency',
        'status', 'next_due_date', 'end_date',
    )
    list_filter = ('status', 'payment_frequency', 'start_date')
    search_fields = ('client__first_name', 'client__last_name', 'organization_id')
    readonly_fields = ('remaining_amount', 'created_at', 'updated_at')
    raw_id_fields = ('client', 'motorcycle')
    inlines = [PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'current_account', 'amount_paid', 'payment_date',
        'payment_method', 'is_down_payment',
    )
    list_filter = ('is_down_payment', 'payment_date')
    search_fields = ('transaction_reference',)
    readonly_fields = ('created_at',)
    raw_id_fields = ('current_account',)
