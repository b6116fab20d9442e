from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase

from ..analytics import (
    PerformanceRating,
    build_dashboard,
    build_report,
    filter_claims_by_period,
    period_label,
)
from ..exports import render_pdf, report_lines, report_rows
from ..models import Claim

NOW = datetime(2024, 4, 1, 12, 0, tzinfo=dt_timezone.utc)


def make_claim(lecturer_id, amount, status, month_year="2024-01"):
    return Claim(
        lecturer_id=lecturer_id,
        month_year=month_year,
        hours_worked=Decimal("10"),
        hourly_rate=Decimal("100"),
        amount=Decimal(amount),
        status=status,
    )


class DashboardMetricsTests(SimpleTestCase):
    def test_empty_collection_yields_zeroes(self):
        metrics = build_dashboard([], now=NOW)
        self.assertEqual(metrics.total_claims, 0)
        self.assertEqual(metrics.approval_rate, Decimal("0"))
        self.assertEqual(metrics.average_claim_amount, Decimal("0"))
        self.assertEqual(metrics.top_lecturers, [])
        self.assertEqual(metrics.generated_at, NOW)

    def test_counts_rates_and_totals(self):
        claims = [
            make_claim(1, "1000.00", Claim.Status.APPROVED, "2024-01"),
            make_claim(2, "2000.00", Claim.Status.APPROVED, "2024-02"),
            make_claim(1, "500.00", Claim.Status.REJECTED),
        ]
        metrics = build_dashboard(claims, {1: "Ann", 2: "Ben"}, now=NOW)

        self.assertEqual(metrics.total_claims, 3)
        self.assertEqual(metrics.approved_claims, 2)
        self.assertEqual(metrics.rejected_claims, 1)
        self.assertEqual(metrics.total_amount_approved, Decimal("3000.00"))
        self.assertEqual(metrics.average_claim_amount, Decimal("1500.00"))
        self.assertEqual(metrics.approval_rate, Decimal("66.67"))
        self.assertEqual(metrics.payment_processing_rate, Decimal("0"))
        self.assertEqual([entry.lecturer_name for entry in metrics.top_lecturers], ["Ben", "Ann"])
        self.assertEqual([month.month_year for month in metrics.monthly_breakdown], ["2024-01", "2024-02"])
        self.assertEqual(metrics.monthly_breakdown[0].month_name, "January 2024")

    def test_paid_claims_drive_processing_rate(self):
        claims = [
            make_claim(1, "100.00", Claim.Status.APPROVED),
            make_claim(1, "300.00", Claim.Status.PAID),
            make_claim(1, "50.00", Claim.Status.SUBMITTED),
        ]
        metrics = build_dashboard(claims, now=NOW)
        self.assertEqual(metrics.paid_claims, 1)
        self.assertEqual(metrics.pending_approval_count, 1)
        self.assertEqual(metrics.total_amount_paid, Decimal("300.00"))
        self.assertEqual(metrics.payment_processing_rate, Decimal("100.00"))
        self.assertEqual(metrics.top_lecturers[0].lecturer_name, "Lecturer 1")

    def test_top_lecturers_are_rated_and_capped_at_five(self):
        claims = [
            make_claim(1, "15000.00", Claim.Status.APPROVED),
            make_claim(1, "10000.00", Claim.Status.APPROVED),
            make_claim(2, "12000.00", Claim.Status.APPROVED),
        ]
        claims += [make_claim(lecturer_id, "100.00", Claim.Status.APPROVED) for lecturer_id in range(3, 8)]
        metrics = build_dashboard(claims, now=NOW)

        self.assertEqual(len(metrics.top_lecturers), 5)
        first, second = metrics.top_lecturers[:2]
        self.assertEqual(first.total_amount, Decimal("25000.00"))
        self.assertEqual(first.claim_count, 2)
        self.assertEqual(first.average_per_claim, Decimal("12500.00"))
        self.assertEqual(first.performance_rating, PerformanceRating.EXCELLENT)
        self.assertEqual(second.performance_rating, PerformanceRating.VERY_GOOD)
        self.assertEqual(metrics.top_lecturers[2].performance_rating, PerformanceRating.STANDARD)


class ReportTests(SimpleTestCase):
    def setUp(self):
        self.claims = [
            make_claim(1, "1000.00", Claim.Status.APPROVED, "2024-02"),
            make_claim(1, "400.00", Claim.Status.REJECTED, "2024-02"),
            make_claim(2, "600.00", Claim.Status.SUBMITTED, "2024-03"),
            make_claim(3, "900.00", Claim.Status.PAID, "2023-12"),
        ]

    def test_department_stats_count_every_status(self):
        report = build_report(
            self.claims, {1: "Ann", 2: "Ben", 3: "Cat"}, {1: "Computer Science", 2: "", 3: "Law"}, now=NOW
        )
        stats = {stat.department: stat for stat in report.department_stats}
        self.assertEqual(list(stats), ["Computer Science", "Law", "Unassigned"])
        self.assertEqual(stats["Computer Science"].total_claims, 2)
        self.assertEqual(stats["Computer Science"].total_amount, Decimal("1400.00"))
        self.assertEqual(stats["Computer Science"].average_claim_amount, Decimal("700.00"))
        self.assertEqual(stats["Unassigned"].lecturer_count, 1)
        self.assertEqual(report.period_label, "All time")

    def test_period_filter(self):
        self.assertEqual(len(filter_claims_by_period(self.claims, 2024)), 3)
        self.assertEqual(len(filter_claims_by_period(self.claims, 2024, 2)), 2)
        self.assertEqual(len(filter_claims_by_period(self.claims)), 4)
        self.assertEqual(period_label(2024, 2), "2024-02")
        self.assertEqual(period_label(2024), "2024")
        self.assertEqual(period_label(), "All time")

    def test_summary_mentions_rate_and_total(self):
        report = build_report(self.claims, now=NOW)
        self.assertIn("4 total claims", report.summary)
        self.assertIn("25.00%", report.summary)
        self.assertIn("1,000.00", report.summary)

    def test_exports_include_headline_figures(self):
        report = build_report(self.claims, {1: "Ann (Smith)"}, {1: "Computer Science"}, label="2024", now=NOW)
        rows = report_rows(report)
        self.assertEqual(rows[0], ["Contract Monthly Claims Report"])
        self.assertIn(["Total claims", 4], rows)
        self.assertIn("Period: 2024", report_lines(report))

        pdf = render_pdf("Contract Monthly Claims Report", report_lines(report) * 3)
        self.assertTrue(pdf.startswith(b"%PDF-1.4"))
        self.assertTrue(pdf.endswith(b"%%EOF"))
        self.assertIn(b"/Count 2", pdf)
        self.assertIn(b"Ann \\(Smith\\)", pdf)
