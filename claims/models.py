"""Database models for the contract monthly claim workflow."""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import models

User = get_user_model()


class UserProfile(models.Model):
    """Carries the workflow role of every user account."""

    class Role(models.TextChoices):
        LECTURER = "LECTURER", "Lecturer"
        COORDINATOR = "COORDINATOR", "Programme Coordinator"
        MANAGER = "MANAGER", "Academic Manager"
        HR = "HR", "Human Resources"

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    role = models.CharField(max_length=12, choices=Role.choices, default=Role.LECTURER)
    phone_number = models.CharField(max_length=20, blank=True)

    def __str__(self) -> str:
        return f"{self.user.get_username()} ({self.get_role_display()})"

    @property
    def is_reviewer(self) -> bool:
        return self.role in {self.Role.COORDINATOR, self.Role.MANAGER}

    @classmethod
    def ensure_for_user(cls, user: User) -> "UserProfile":
        profile, _ = cls.objects.get_or_create(user=user)
        return profile


class Lecturer(models.Model):
    """Rate-card and contract details for a lecturer account."""

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="lecturer",
    )
    employee_number = models.CharField(max_length=20, unique=True)
    department = models.CharField(max_length=100, blank=True)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    contract_start = models.DateField(null=True, blank=True)
    contract_end = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ["employee_number"]

    def __str__(self) -> str:
        return f"{self.display_name} ({self.employee_number})"

    @property
    def display_name(self) -> str:
        return self.user.get_full_name() or self.user.get_username()


class ClaimQuerySet(models.QuerySet):
    def in_month(self, lecturer_id: int, month_year: str) -> "ClaimQuerySet":
        return self.filter(lecturer_id=lecturer_id, month_year=month_year)


class Claim(models.Model):
    """A lecturer's monthly hours and pay submission."""

    class Status(models.TextChoices):
        SUBMITTED = "SUBMITTED", "Submitted"
        UNDER_REVIEW = "UNDER_REVIEW", "Under Review"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"
        PAID = "PAID", "Paid"

    lecturer = models.ForeignKey(
        Lecturer,
        on_delete=models.PROTECT,
        related_name="claims",
    )
    claim_date = models.DateTimeField()
    month_year = models.CharField(max_length=7, db_index=True)
    hours_worked = models.DecimalField(max_digits=6, decimal_places=2)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=12,
        choices=Status.choices,
        default=Status.SUBMITTED,
        db_index=True,
    )
    submission_comments = models.TextField(max_length=500, blank=True)

    created_at = models.DateTimeField()
    modified_at = models.DateTimeField()

    objects = ClaimQuerySet.as_manager()

    class Meta:
        ordering = ["-claim_date"]

    def __str__(self) -> str:
        return f"Claim #{self.pk} · {self.month_year} ({self.get_status_display()})"

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.SUBMITTED


class Approval(models.Model):
    """Audit record of a single approve or reject decision."""

    claim = models.ForeignKey(
        Claim,
        related_name="approvals",
        on_delete=models.CASCADE,
    )
    approver = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="claim_approvals",
    )
    approver_role = models.CharField(max_length=12, choices=UserProfile.Role.choices)
    approval_date = models.DateTimeField()
    is_approved = models.BooleanField()
    comments = models.TextField(max_length=500, blank=True)
    approval_order = models.PositiveIntegerField()

    class Meta:
        ordering = ["approval_order", "id"]

    def __str__(self) -> str:
        verdict = "approved" if self.is_approved else "rejected"
        return f"Claim #{self.claim_id} · Step {self.approval_order} {verdict}"


class Document(models.Model):
    """Metadata for a supporting file uploaded with a claim."""

    claim = models.ForeignKey(
        Claim,
        related_name="documents",
        on_delete=models.CASCADE,
    )
    file_name = models.CharField(max_length=255)
    file = models.FileField(upload_to="claim_documents/%Y/%m/", max_length=500)
    file_size = models.PositiveBigIntegerField()
    file_type = models.CharField(max_length=50)
    upload_date = models.DateTimeField()
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["upload_date"]

    def __str__(self) -> str:
        return self.file_name
