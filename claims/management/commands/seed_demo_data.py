from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from ...calculations import compute_amount, month_bucket
from ...models import Claim, Lecturer, UserProfile
from ...repositories import ClaimRepository

User = get_user_model()

DEMO_USERS = [
    ("admin", "admin123", "System", "Administrator", "admin@cmcs.example", UserProfile.Role.MANAGER),
    ("lecturer", "lecturer123", "John", "Smith", "john.smith@university.example", UserProfile.Role.LECTURER),
    ("coordinator", "coordinator123", "Sarah", "Johnson", "sarah.johnson@university.example", UserProfile.Role.COORDINATOR),
    ("hr", "hr123", "Helen", "Roberts", "hr@university.example", UserProfile.Role.HR),
]

# (months ago, hours, status, comment)
DEMO_CLAIMS = [
    (0, Decimal("40"), Claim.Status.SUBMITTED, "Sample claim awaiting review"),
    (1, Decimal("35"), Claim.Status.APPROVED, "Previous month claim - approved"),
    (2, Decimal("45"), Claim.Status.PAID, "Two months ago claim - paid"),
]


def _months_ago(months: int):
    moment = timezone.localtime()
    for _ in range(months):
        moment = moment.replace(day=1) - timedelta(days=1)
    return moment


class Command(BaseCommand):
    help = "Create demo users, a lecturer profile and sample claims."

    def handle(self, *args, **options):
        repository = ClaimRepository()
        created_users = 0
        for username, password, first, last, email, role in DEMO_USERS:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username=username,
                    password=password,
                    first_name=first,
                    last_name=last,
                    email=email,
                    is_staff=username == "admin",
                    is_superuser=username == "admin",
                )
                created_users += 1
            profile = UserProfile.ensure_for_user(user)
            if profile.role != role:
                profile.role = role
                profile.save(update_fields=["role"])

        lecturer, _ = Lecturer.objects.get_or_create(
            user=User.objects.get(username="lecturer"),
            defaults={
                "employee_number": "EMP001",
                "department": "Computer Science",
                "hourly_rate": Decimal("150.00"),
                "contract_start": date.today() - timedelta(days=365),
                "contract_end": date.today() + timedelta(days=365),
            },
        )

        created_claims = 0
        if not repository.claims_for_lecturer(lecturer.pk):
            for months, hours, status, comment in DEMO_CLAIMS:
                moment = _months_ago(months)
                repository.save_claim(
                    Claim(
                        lecturer=lecturer,
                        claim_date=moment,
                        month_year=month_bucket(moment),
                        hours_worked=hours,
                        hourly_rate=lecturer.hourly_rate,
                        amount=compute_amount(hours, lecturer.hourly_rate),
                        status=status,
                        submission_comments=comment,
                        created_at=moment,
                        modified_at=moment,
                    )
                )
                created_claims += 1

        self.stdout.write(
            self.style.SUCCESS(f"Created {created_users} user(s) and {created_claims} claim(s).")
        )
