from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User


def _badge(label, background, color='white'):
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        background, color, label,
    )


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for event staff accounts.

    Administrators are ``is_staff`` users; kit-desk volunteers only carry
    ``can_distribute_kits``.
    """

    list_display = [
        'email',
        'display_name',
        'is_active_badge',
        'role_badge',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'is_active',
        'is_staff',
        'can_distribute_kits',
        'created_at',
    ]

    search_fields = [
        'email',
        'display_name',
    ]

    ordering = ['-created_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'display_name', 'password')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'can_distribute_kits', 'is_superuser'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create Staff Account', {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'password1', 'password2'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'can_distribute_kits'),
        }),
    )

    readonly_fields = ['created_at', 'last_login']

    filter_horizontal = []

    def is_active_badge(self, obj):
        """Display active status as colored badge."""
        if obj.is_active:
            return _badge('Active', '#6B8E5E')
        return _badge('Inactive', '#B85C5C')
    is_active_badge.short_description = 'Status'
    is_active_badge.admin_order_field = 'is_active'

    def role_badge(self, obj):
        """Admin, kit desk or plain account."""
        if obj.is_staff:
            return _badge('Admin', '#A47449')
        if obj.can_distribute_kits:
            return _badge('Kit desk', '#4A7BA7')
        return _badge('User', '#ccc', color='#666')
    role_badge.short_description = 'Role'

    actions = ['activate_users', 'deactivate_users', 'grant_kit_distribution']

    @admin.action(description='Activate selected users')
    def activate_users(self, request, queryset):
        count = queryset.update(is_active=True)
        self.message_user(request, f'Activated {count} user(s).')

    @admin.action(description='Deactivate selected users')
    def deactivate_users(self, request, queryset):
        """Deactivate selected users (superusers are skipped)."""
        safe_queryset = queryset.filter(is_superuser=False)
        count = safe_queryset.update(is_active=False)
        skipped = queryset.count() - count
        msg = f'Deactivated {count} user(s).'
        if skipped:
            msg += f' Skipped {skipped} superuser(s).'
        self.message_user(request, msg)

    @admin.action(description='Allow selected users to distribute kits')
    def grant_kit_distribution(self, request, queryset):
        count = queryset.update(can_distribute_kits=True)
        self.message_user(request, f'{count} user(s) can now distribute kits.')
