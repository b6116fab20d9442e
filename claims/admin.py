"""Admin configuration for contract monthly claims."""
from django.contrib import admin

from .models import Approval, Claim, Document, Lecturer, UserProfile


class ApprovalInline(admin.TabularInline):
    model = Approval
    extra = 0
    can_delete = False
    readonly_fields = ("approver", "approver_role", "approval_date", "is_approved", "comments", "approval_order")

    def has_add_permission(self, request, obj=None):
        return False


class DocumentInline(admin.TabularInline):
    model = Document
    extra = 0
    readonly_fields = ("file_name", "file_size", "file_type", "upload_date")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "phone_number")
    list_filter = ("role",)
    search_fields = ("user__username", "user__email")
    autocomplete_fields = ("user",)


@admin.register(Lecturer)
class LecturerAdmin(admin.ModelAdmin):
    list_display = ("employee_number", "user", "department", "hourly_rate", "contract_end")
    list_filter = ("department",)
    search_fields = ("employee_number", "user__username", "user__first_name", "user__last_name")
    autocomplete_fields = ("user",)


@admin.register(Claim)
class ClaimAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "lecturer",
        "month_year",
        "hours_worked",
        "hourly_rate",
        "amount",
        "status",
        "claim_date",
    )
    list_filter = ("status", "month_year")
    search_fields = ("lecturer__user__username", "lecturer__employee_number", "submission_comments")
    autocomplete_fields = ("lecturer",)
    readonly_fields = ("amount", "claim_date", "created_at", "modified_at")
    ordering = ("-claim_date",)
    inlines = [DocumentInline, ApprovalInline]


@admin.register(Approval)
class ApprovalAdmin(admin.ModelAdmin):
    list_display = ("claim", "approval_order", "approver", "approver_role", "is_approved", "approval_date")
    list_filter = ("is_approved", "approver_role")
    search_fields = ("claim__lecturer__user__username", "approver__username", "comments")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ("file_name", "claim", "file_type", "file_size", "upload_date", "is_active")
    list_filter = ("file_type", "is_active")
    search_fields = ("file_name", "claim__lecturer__user__username")
