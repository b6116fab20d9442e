"""Dashboard and report figures derived from the claim collection."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from django.db import models
from django.utils import timezone

from .calculations import quantize_money
from .models import Claim, Lecturer

ZERO = Decimal("0")
TOP_LECTURER_LIMIT = 5


class PerformanceRating(models.TextChoices):
    EXCELLENT = "Excellent", "Excellent"
    VERY_GOOD = "VeryGood", "Very Good"
    GOOD = "Good", "Good"
    STANDARD = "Standard", "Standard"


def rate_performance(total_amount: Decimal) -> PerformanceRating:
    if total_amount > 20000:
        return PerformanceRating.EXCELLENT
    if total_amount > 10000:
        return PerformanceRating.VERY_GOOD
    if total_amount > 5000:
        return PerformanceRating.GOOD
    return PerformanceRating.STANDARD


def percentage(part: int, whole: int) -> Decimal:
    if not whole:
        return ZERO
    return quantize_money(Decimal(part) / Decimal(whole) * 100)


def average(total: Decimal, count: int) -> Decimal:
    if not count:
        return ZERO
    return quantize_money(total / count)


@dataclass
class TopLecturer:
    lecturer_id: int
    lecturer_name: str
    department: str
    total_amount: Decimal
    claim_count: int

    @property
    def average_per_claim(self) -> Decimal:
        return average(self.total_amount, self.claim_count)

    @property
    def performance_rating(self) -> PerformanceRating:
        return rate_performance(self.total_amount)


@dataclass
class MonthlyBreakdown:
    month_year: str
    total_amount: Decimal
    claim_count: int

    @property
    def monthly_average(self) -> Decimal:
        return average(self.total_amount, self.claim_count)

    @property
    def month_name(self) -> str:
        try:
            return datetime.strptime(self.month_year, "%Y-%m").strftime("%B %Y")
        except ValueError:
            return self.month_year


@dataclass
class DepartmentStat:
    department: str
    lecturer_count: int
    total_claims: int
    total_amount: Decimal

    @property
    def average_claim_amount(self) -> Decimal:
        return average(self.total_amount, self.total_claims)


@dataclass
class DashboardMetrics:
    total_claims: int = 0
    approved_claims: int = 0
    paid_claims: int = 0
    rejected_claims: int = 0
    pending_approval_count: int = 0
    total_amount_approved: Decimal = ZERO
    total_amount_paid: Decimal = ZERO
    average_claim_amount: Decimal = ZERO
    approval_rate: Decimal = ZERO
    payment_processing_rate: Decimal = ZERO
    top_lecturers: List[TopLecturer] = field(default_factory=list)
    monthly_breakdown: List[MonthlyBreakdown] = field(default_factory=list)
    generated_at: Optional[datetime] = None


@dataclass
class ReportMetrics(DashboardMetrics):
    period_label: str = "All time"
    department_stats: List[DepartmentStat] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return (
            f"This report covers {self.total_claims} total claims with an approval rate of "
            f"{self.approval_rate}% and total approved amount of {self.total_amount_approved:,.2f}."
        )


def lecturer_directory(lecturers: Iterable[Lecturer]) -> Tuple[Dict[int, str], Dict[int, str]]:
    """Split lecturers into id->name and id->department lookups."""
    names: Dict[int, str] = {}
    departments: Dict[int, str] = {}
    for lecturer in lecturers:
        names[lecturer.pk] = lecturer.display_name
        departments[lecturer.pk] = lecturer.department
    return names, departments


def filter_claims_by_period(
    claims: Iterable[Claim], year: Optional[int] = None, month: Optional[int] = None
) -> List[Claim]:
    if not year:
        return list(claims)
    prefix = f"{year:04d}-{month:02d}" if month else f"{year:04d}-"
    return [claim for claim in claims if claim.month_year.startswith(prefix)]


def period_label(year: Optional[int] = None, month: Optional[int] = None) -> str:
    if not year:
        return "All time"
    if month:
        return f"{year:04d}-{month:02d}"
    return str(year)


def _populate(
    metrics: DashboardMetrics,
    claims: List[Claim],
    names: Mapping[int, str],
    departments: Mapping[int, str],
) -> None:
    approved = [claim for claim in claims if claim.status == Claim.Status.APPROVED]
    paid = [claim for claim in claims if claim.status == Claim.Status.PAID]

    metrics.total_claims = len(claims)
    metrics.approved_claims = len(approved)
    metrics.paid_claims = len(paid)
    metrics.rejected_claims = sum(1 for claim in claims if claim.status == Claim.Status.REJECTED)
    metrics.pending_approval_count = sum(1 for claim in claims if claim.status == Claim.Status.SUBMITTED)
    metrics.total_amount_approved = sum((claim.amount for claim in approved), ZERO)
    metrics.total_amount_paid = sum((claim.amount for claim in paid), ZERO)
    metrics.average_claim_amount = average(metrics.total_amount_approved, len(approved))
    metrics.approval_rate = percentage(len(approved), len(claims))
    metrics.payment_processing_rate = percentage(len(paid), len(approved))

    lecturer_totals: Dict[int, Decimal] = defaultdict(lambda: ZERO)
    lecturer_counts: Dict[int, int] = defaultdict(int)
    month_totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    month_counts: Dict[str, int] = defaultdict(int)
    for claim in approved:
        lecturer_totals[claim.lecturer_id] += claim.amount
        lecturer_counts[claim.lecturer_id] += 1
        month_totals[claim.month_year] += claim.amount
        month_counts[claim.month_year] += 1

    ranked = sorted(lecturer_totals.items(), key=lambda item: item[1], reverse=True)
    metrics.top_lecturers = [
        TopLecturer(
            lecturer_id=lecturer_id,
            lecturer_name=names.get(lecturer_id, f"Lecturer {lecturer_id}"),
            department=departments.get(lecturer_id, ""),
            total_amount=total,
            claim_count=lecturer_counts[lecturer_id],
        )
        for lecturer_id, total in ranked[:TOP_LECTURER_LIMIT]
    ]
    metrics.monthly_breakdown = [
        MonthlyBreakdown(
            month_year=month_year,
            total_amount=month_totals[month_year],
            claim_count=month_counts[month_year],
        )
        for month_year in sorted(month_totals)
    ]


def build_dashboard(
    claims: Iterable[Claim],
    lecturer_names: Optional[Mapping[int, str]] = None,
    departments: Optional[Mapping[int, str]] = None,
    now: Optional[datetime] = None,
) -> DashboardMetrics:
    """Headline HR figures, recomputed from scratch on every call."""
    metrics = DashboardMetrics(generated_at=now or timezone.now())
    _populate(metrics, list(claims), lecturer_names or {}, departments or {})
    return metrics


def build_report(
    claims: Iterable[Claim],
    lecturer_names: Optional[Mapping[int, str]] = None,
    departments: Optional[Mapping[int, str]] = None,
    label: str = "All time",
    now: Optional[datetime] = None,
) -> ReportMetrics:
    """Dashboard figures plus a per-department breakdown for the exported report.

    Department statistics count every claim in the period regardless of status;
    lecturers with no department are grouped under "Unassigned".
    """
    claims = list(claims)
    departments = departments or {}
    report = ReportMetrics(generated_at=now or timezone.now(), period_label=label)
    _populate(report, claims, lecturer_names or {}, departments)

    members: Dict[str, set] = defaultdict(set)
    for lecturer_id, department in departments.items():
        members[department or "Unassigned"].add(lecturer_id)
    claim_counts: Dict[str, int] = defaultdict(int)
    amounts: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for claim in claims:
        department = departments.get(claim.lecturer_id) or "Unassigned"
        members[department].add(claim.lecturer_id)
        claim_counts[department] += 1
        amounts[department] += claim.amount

    report.department_stats = [
        DepartmentStat(
            department=department,
            lecturer_count=len(members[department]),
            total_claims=claim_counts[department],
            total_amount=amounts[department],
        )
        for department in sorted(members)
    ]
    return report
