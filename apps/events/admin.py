from django.contrib import admin
from .models import Category, ClaimLocation, PaymentMethod, Department, Ministry, Cluster


class LookupAdmin(admin.ModelAdmin):
    list_display = ['name', 'active', 'updated_at']
    list_filter = ['active']
    search_fields = ['name']
    actions = ['activate', 'deactivate']

    @admin.action(description='Activate selected entries')
    def activate(self, request, queryset):
        count = queryset.update(active=True)
        self.message_user(request, f'Activated {count} entr(ies).')

    @admin.action(description='Deactivate selected entries')
    def deactivate(self, request, queryset):
        count = queryset.update(active=False)
        self.message_user(request, f'Deactivated {count} entr(ies).')


@admin.register(Category)
class CategoryAdmin(LookupAdmin):
    list_display = ['name', 'price', 'display_order', 'active']
    list_editable = ['display_order']


@admin.register(ClaimLocation)
class ClaimLocationAdmin(LookupAdmin):
    list_display = ['name', 'address', 'active']


@admin.register(PaymentMethod)
class PaymentMethodAdmin(LookupAdmin):
    list_display = ['name', 'account_type', 'account_number', 'active']


@admin.register(Department)
class DepartmentAdmin(LookupAdmin):
    pass


@admin.register(Ministry)
class MinistryAdmin(LookupAdmin):
    list_display = ['name', 'department', 'active']
    list_filter = ['active', 'department']


@admin.register(Cluster)
class ClusterAdmin(LookupAdmin):
    pass
