from __future__ import annotations

import shutil
import tempfile
from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase, override_settings

from ..models import Approval, Claim, Document, Lecturer, UserProfile
from ..repositories import ClaimRepository
from ..workflow import (
    ClaimAssessment,
    Priority,
    QueueEntry,
    approval_queue,
    assess_claim,
    decide_claim,
    edit_claim,
    queue_sort_key,
    register_user,
    submit_claim,
)

User = get_user_model()

NOW = datetime(2024, 5, 15, 9, 0, tzinfo=dt_timezone.utc)
MIB = 1024 * 1024


def use_temp_media(test_case):
    media_root = tempfile.mkdtemp()
    test_case.addCleanup(shutil.rmtree, media_root, ignore_errors=True)
    media_override = override_settings(MEDIA_ROOT=media_root)
    media_override.enable()
    test_case.addCleanup(media_override.disable)


def make_user(username, role=UserProfile.Role.LECTURER, **extra):
    user = User.objects.create_user(username=username, password="pass123", **extra)
    profile = UserProfile.ensure_for_user(user)
    profile.role = role
    profile.save(update_fields=["role"])
    return user


class ClaimWorkflowTests(TestCase):
    def setUp(self):
        use_temp_media(self)
        self.repository = ClaimRepository()
        self.lecturer_user = make_user(
            "lecturer", first_name="John", last_name="Smith", email="john@university.example"
        )
        self.lecturer = Lecturer.objects.create(
            user=self.lecturer_user,
            employee_number="EMP001",
            department="Computer Science",
            hourly_rate=Decimal("150.00"),
        )
        self.coordinator = make_user(
            "coordinator", UserProfile.Role.COORDINATOR, email="coordinator@university.example"
        )
        self.manager = make_user("manager", UserProfile.Role.MANAGER)

    def _submit(self, hours=40, rate=150, **kwargs):
        kwargs.setdefault("now", NOW)
        return submit_claim(self.repository, self.lecturer, hours, rate, **kwargs).claim

    def test_profile_is_created_for_new_users(self):
        user = User.objects.create_user(username="fresh", password="pass123")
        self.assertEqual(user.profile.role, UserProfile.Role.LECTURER)

    def test_submission_records_claim_and_notifies_coordinators(self):
        claim = self._submit(170, 100, comments="March teaching")

        claim.refresh_from_db()
        self.assertEqual(claim.status, Claim.Status.SUBMITTED)
        self.assertEqual(claim.month_year, "2024-05")
        self.assertEqual(claim.amount, Decimal("17500.00"))
        self.assertEqual(claim.claim_date, NOW)
        self.assertEqual(claim.submission_comments, "March teaching")
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["coordinator@university.example"])

    def test_ids_are_assigned_sequentially(self):
        first = self._submit()
        second = self._submit()
        self.assertEqual(second.pk, first.pk + 1)

    def test_invalid_documents_are_dropped_without_blocking_the_claim(self):
        files = [
            SimpleUploadedFile("timesheet.pdf", b"x" * (6 * MIB), content_type="application/pdf"),
            SimpleUploadedFile("contract.docx", b"x" * (2 * MIB)),
            SimpleUploadedFile("empty.pdf", b""),
        ]
        result = submit_claim(self.repository, self.lecturer, 40, 150, files=files, now=NOW)

        self.assertEqual([document.file_name for document in result.documents], ["contract.docx"])
        self.assertEqual([rejected.file_name for rejected in result.rejected_files], ["timesheet.pdf"])
        self.assertIn("5 MB", result.rejected_files[0].reason)
        document = Document.objects.get(claim=result.claim)
        self.assertEqual(document.file_size, 2 * MIB)
        self.assertEqual(document.file_type, "docx")
        self.assertTrue(document.is_active)

    def test_monthly_limit_counts_claims_in_the_same_month(self):
        for _ in range(3):
            self._submit()
        with self.assertRaises(ValidationError) as ctx:
            self._submit()
        self.assertEqual(ctx.exception.code, "monthly_limit")
        self.assertEqual(Claim.objects.count(), 3)

        self._submit(now=NOW + timedelta(days=31))
        self.assertEqual(Claim.objects.filter(month_year="2024-06").count(), 1)

    @override_settings(TIME_ZONE="Africa/Johannesburg")
    def test_month_rolls_over_at_local_midnight(self):
        for _ in range(3):
            self._submit(now=datetime(2024, 5, 31, 12, 0, tzinfo=dt_timezone.utc))
        # 01:00 on 1 June local time.
        claim = self._submit(now=datetime(2024, 5, 31, 23, 0, tzinfo=dt_timezone.utc))
        self.assertEqual(claim.month_year, "2024-06")
        self.assertEqual(Claim.objects.filter(month_year="2024-05").count(), 3)

    def test_rejected_submission_saves_nothing(self):
        with self.assertRaises(ValidationError):
            self._submit(hours=0)
        self.assertFalse(Claim.objects.exists())
        self.assertEqual(mail.outbox, [])

    def test_decisions_append_to_the_audit_trail(self):
        claim = self._submit()
        first = decide_claim(
            self.repository, claim.pk, True, self.coordinator, UserProfile.Role.COORDINATOR, "Looks fine", now=NOW
        )
        second = decide_claim(
            self.repository, claim.pk, False, self.manager, "MANAGER", now=NOW + timedelta(hours=1)
        )

        claim.refresh_from_db()
        self.assertEqual(claim.status, Claim.Status.REJECTED)
        self.assertEqual(claim.modified_at, NOW + timedelta(hours=1))
        self.assertEqual((first.approval_order, second.approval_order), (1, 2))
        self.assertEqual(
            list(Approval.objects.filter(claim=claim).values_list("approver_role", "is_approved")),
            [("COORDINATOR", True), ("MANAGER", False)],
        )
        self.assertEqual(mail.outbox[-1].to, ["john@university.example"])
        self.assertIn("rejected", mail.outbox[-1].subject)

    def test_deciding_a_missing_claim_returns_none(self):
        self.assertIsNone(
            decide_claim(self.repository, 999, True, self.coordinator, UserProfile.Role.COORDINATOR)
        )
        self.assertFalse(Approval.objects.exists())

    def test_hr_edit_recomputes_amount_and_sets_status(self):
        claim = self._submit(40, 150)
        updated = edit_claim(self.repository, claim.pk, 170, 100, "Corrected hours", status=Claim.Status.PAID)

        claim.refresh_from_db()
        self.assertEqual(updated.pk, claim.pk)
        self.assertEqual(claim.amount, Decimal("17500.00"))
        self.assertEqual(claim.status, Claim.Status.PAID)
        self.assertEqual(claim.submission_comments, "Corrected hours")

    def test_hr_edit_keeps_status_when_none_given(self):
        claim = self._submit()
        edit_claim(self.repository, claim.pk, 10, 100, "")
        claim.refresh_from_db()
        self.assertEqual(claim.status, Claim.Status.SUBMITTED)
        self.assertEqual(claim.amount, Decimal("1000.00"))

    def test_hr_edit_validates_and_handles_missing_claim(self):
        claim = self._submit()
        with self.assertRaises(ValidationError):
            edit_claim(self.repository, claim.pk, 800, 100, "")
        self.assertIsNone(edit_claim(self.repository, 999, 10, 100, ""))


class ApprovalQueueTests(SimpleTestCase):
    def _claim(self, amount, days_ago=1, status=Claim.Status.SUBMITTED, hours="40"):
        return Claim(
            amount=Decimal(amount),
            hours_worked=Decimal(hours),
            status=status,
            claim_date=NOW - timedelta(days=days_ago),
        )

    def test_coordinator_sees_manager_bound_claims_first(self):
        small_old = self._claim("4000", days_ago=5)
        small_new = self._claim("4000", days_ago=2)
        large = self._claim("6000", days_ago=1)
        larger = self._claim("9000", days_ago=1)
        approved = self._claim("20000", status=Claim.Status.APPROVED)

        queue = approval_queue(
            [small_new, small_old, approved, large, larger], UserProfile.Role.COORDINATOR, now=NOW
        )
        self.assertEqual([entry.claim for entry in queue], [larger, large, small_old, small_new])
        self.assertTrue(queue[0].assessment.requires_manager_approval)
        self.assertFalse(queue[2].assessment.requires_manager_approval)

    def _entry(self, claim, requires_manager_approval):
        assessment = ClaimAssessment(
            days_pending=1,
            has_excessive_hours=False,
            has_unusual_amount=False,
            requires_manager_approval=requires_manager_approval,
            priority=Priority.MEDIUM,
            requires_attention=False,
        )
        return QueueEntry(claim, assessment)

    def test_manager_sign_off_outranks_a_larger_amount(self):
        flagged = self._entry(self._claim("6000"), True)
        unflagged = self._entry(self._claim("9000"), False)
        older_unflagged = self._entry(self._claim("9000", days_ago=3), False)

        ordered = sorted([unflagged, older_unflagged, flagged], key=queue_sort_key)
        self.assertEqual(ordered, [flagged, older_unflagged, unflagged])

    def test_manager_queue_orders_by_amount(self):
        modest = self._claim("4500")
        large = self._claim("6000")
        queue = approval_queue([modest, large], UserProfile.Role.MANAGER, now=NOW)
        self.assertEqual([entry.claim for entry in queue], [large, modest])
        self.assertFalse(any(entry.assessment.requires_manager_approval for entry in queue))

    def test_assessment_flags_and_priority(self):
        assessment = assess_claim(self._claim("12000", days_ago=3, hours="170"), UserProfile.Role.MANAGER, NOW)
        self.assertEqual(assessment.days_pending, 3)
        self.assertTrue(assessment.has_excessive_hours)
        self.assertTrue(assessment.has_unusual_amount)
        self.assertTrue(assessment.requires_attention)
        self.assertEqual(assessment.priority, Priority.HIGH)

        self.assertEqual(assess_claim(self._claim("100", days_ago=15), "MANAGER", NOW).priority, Priority.HIGH)
        self.assertEqual(assess_claim(self._claim("5500"), "MANAGER", NOW).priority, Priority.MEDIUM)
        self.assertEqual(assess_claim(self._claim("100", days_ago=8), "MANAGER", NOW).priority, Priority.MEDIUM)
        quiet = assess_claim(self._claim("100"), "MANAGER", NOW)
        self.assertEqual(quiet.priority, Priority.LOW)
        self.assertFalse(quiet.requires_attention)
        self.assertTrue(assess_claim(self._claim("100", days_ago=22), "MANAGER", NOW).requires_attention)


class SeedDemoDataTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_demo_data", stdout=StringIO())
        call_command("seed_demo_data", stdout=StringIO())

        lecturer = Lecturer.objects.get(employee_number="EMP001")
        self.assertEqual(lecturer.user.profile.role, UserProfile.Role.LECTURER)
        self.assertEqual(
            sorted(lecturer.claims.values_list("status", flat=True)),
            sorted([Claim.Status.SUBMITTED, Claim.Status.APPROVED, Claim.Status.PAID]),
        )
        self.assertEqual(User.objects.get(username="hr").profile.role, UserProfile.Role.HR)
        self.assertTrue(User.objects.get(username="admin").is_superuser)


class ClaimRepositoryTests(TestCase):
    def setUp(self):
        use_temp_media(self)
        self.repository = ClaimRepository()
        self.user = make_user("Lecturer.One", email="one@university.example")
        self.lecturer = Lecturer.objects.create(user=self.user, employee_number="EMP010", hourly_rate=Decimal("80"))

    def test_next_id_starts_at_one_and_follows_the_highest_id(self):
        self.assertEqual(self.repository.next_id(Claim), 1)
        claim = submit_claim(self.repository, self.lecturer, 10, 80, now=NOW).claim
        self.assertEqual(claim.pk, 1)
        self.assertEqual(self.repository.next_id(Claim), 2)

    def test_lookups(self):
        self.assertEqual(self.repository.get_lecturer(self.lecturer.pk), self.lecturer)
        self.assertIsNone(self.repository.get_lecturer(999))
        self.assertEqual(self.repository.get_user(self.user.pk), self.user)
        self.assertEqual(self.repository.get_user_by_username("lecturer.one"), self.user)
        self.assertIsNone(self.repository.get_claim(999))
        self.assertEqual(self.repository.all_lecturers(), [self.lecturer])
        self.assertEqual(self.repository.users_with_role(UserProfile.Role.LECTURER), [self.user])

    def test_register_user_contract_covers_one_year(self):
        user = make_user("leapday")
        lecturer = register_user(
            self.repository, user, UserProfile.Role.LECTURER, now=datetime(2024, 2, 29, 10, 0, tzinfo=dt_timezone.utc)
        )
        self.assertEqual(lecturer.contract_start, date(2024, 2, 29))
        self.assertEqual(lecturer.contract_end, date(2025, 2, 28))

        hr_user = make_user("payroll")
        self.assertIsNone(register_user(self.repository, hr_user, "HR"))
        hr_user.profile.refresh_from_db()
        self.assertEqual(hr_user.profile.role, UserProfile.Role.HR)

    def test_inactive_documents_are_hidden(self):
        claim = submit_claim(
            self.repository,
            self.lecturer,
            10,
            80,
            files=[SimpleUploadedFile("notes.pdf", b"%PDF")],
            now=NOW,
        ).claim
        Document.objects.filter(claim=claim).update(is_active=False)
        self.assertEqual(self.repository.documents_for_claim(claim.pk), [])

    @override_settings(CMCS_COORDINATOR_EMAILS=["office@university.example"])
    def test_coordinator_fallback_addresses(self):
        submit_claim(self.repository, self.lecturer, 10, 80, now=NOW)
        self.assertEqual(mail.outbox[0].to, ["office@university.example"])
