"""Claim lifecycle: registration, submission, decisions, HR edits and approval triage.

Every function here takes the persistence collaborator explicitly and an
optional ``now``; when ``now`` is omitted the current time is used. Decisions
are read-modify-write without a lock or version check, so two reviewers acting
on the same claim at once will race and the later write wins.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .calculations import (
    Number,
    compute_amount,
    document_extension,
    month_bucket,
    to_decimal,
    validate_document,
    validate_hours_and_rate,
    validate_submission,
)
from .models import Approval, Claim, Document, Lecturer, UserProfile
from .notifications import notify_coordinators, notify_lecturer_of_decision
from .repositories import ClaimRepository

logger = structlog.get_logger(__name__)

EXCESSIVE_HOURS = 160
UNUSUAL_AMOUNT = 10000
MANAGER_APPROVAL_AMOUNT = 5000
ATTENTION_DAYS = 21

REGISTERED_DEPARTMENT = "General"
REGISTERED_HOURLY_RATE = Decimal("150.00")


class Priority(models.TextChoices):
    HIGH = "HIGH", "High"
    MEDIUM = "MEDIUM", "Medium"
    LOW = "LOW", "Low"


@dataclass
class RejectedFile:
    file_name: str
    reason: str


@dataclass
class SubmissionResult:
    claim: Claim
    documents: List[Document] = field(default_factory=list)
    rejected_files: List[RejectedFile] = field(default_factory=list)


@dataclass(frozen=True)
class ClaimAssessment:
    """Flags derived from a claim at a given moment for a given reviewer."""

    days_pending: int
    has_excessive_hours: bool
    has_unusual_amount: bool
    requires_manager_approval: bool
    priority: Priority
    requires_attention: bool


@dataclass(frozen=True)
class QueueEntry:
    claim: Claim
    assessment: ClaimAssessment


def days_pending(claim: Claim, now: datetime) -> int:
    return (now - claim.claim_date).days


def claim_priority(amount, pending_days: int) -> Priority:
    if amount > UNUSUAL_AMOUNT or pending_days > 14:
        return Priority.HIGH
    if amount > MANAGER_APPROVAL_AMOUNT or pending_days > 7:
        return Priority.MEDIUM
    return Priority.LOW


def assess_claim(claim: Claim, viewer_role: UserProfile.Role, now: datetime) -> ClaimAssessment:
    pending_days = days_pending(claim, now)
    excessive = claim.hours_worked > EXCESSIVE_HOURS
    unusual = claim.amount > UNUSUAL_AMOUNT
    return ClaimAssessment(
        days_pending=pending_days,
        has_excessive_hours=excessive,
        has_unusual_amount=unusual,
        requires_manager_approval=(
            claim.amount > MANAGER_APPROVAL_AMOUNT and viewer_role == UserProfile.Role.COORDINATOR
        ),
        priority=claim_priority(claim.amount, pending_days),
        requires_attention=excessive or unusual or pending_days > ATTENTION_DAYS,
    )


def queue_sort_key(entry: QueueEntry):
    """Manager-bound claims first, then larger amounts, then older submissions."""
    return (
        not entry.assessment.requires_manager_approval,
        -entry.claim.amount,
        entry.claim.claim_date,
    )


def approval_queue(
    claims: Iterable[Claim], viewer_role: UserProfile.Role, now: Optional[datetime] = None
) -> List[QueueEntry]:
    """Submitted claims in triage order.

    Claims needing a manager's sign-off come first, then larger amounts, then
    the oldest submissions.
    """
    now = now or timezone.now()
    entries = [
        QueueEntry(claim, assess_claim(claim, viewer_role, now))
        for claim in claims
        if claim.status == Claim.Status.SUBMITTED
    ]
    entries.sort(key=queue_sort_key)
    return entries


def submit_claim(
    repository: ClaimRepository,
    lecturer: Lecturer,
    hours_worked: Number,
    hourly_rate: Number,
    comments: str = "",
    files: Iterable = (),
    now: Optional[datetime] = None,
) -> SubmissionResult:
    """Validate and record a new claim along with its supporting documents.

    Raises ``ValidationError`` when the claim itself is refused. Attachments that
    fail validation are dropped and reported in the result; they never block the
    submission.
    """
    now = now or timezone.now()
    month_year = month_bucket(now)
    existing = len(repository.claims_for_lecturer_in_month(lecturer.pk, month_year))
    try:
        validate_submission(hours_worked, hourly_rate, lecturer.pk, existing)
    except ValidationError as exc:
        logger.info(
            "claim_submission_rejected",
            lecturer_id=lecturer.pk,
            reason="; ".join(exc.messages),
        )
        raise

    claim = Claim(
        lecturer=lecturer,
        claim_date=now,
        month_year=month_year,
        hours_worked=to_decimal(hours_worked),
        hourly_rate=to_decimal(hourly_rate),
        amount=compute_amount(hours_worked, hourly_rate),
        status=Claim.Status.SUBMITTED,
        submission_comments=comments,
        created_at=now,
        modified_at=now,
    )
    repository.save_claim(claim)
    result = SubmissionResult(claim=claim)

    for upload in files:
        if not upload.size:
            continue
        try:
            validate_document(upload.name, upload.size)
        except ValidationError as exc:
            result.rejected_files.append(RejectedFile(upload.name, exc.messages[0]))
            logger.warning(
                "document_dropped",
                claim_id=claim.pk,
                file_name=upload.name,
                size=upload.size,
                reason=exc.messages[0],
            )
            continue
        document = Document(
            claim=claim,
            file_name=upload.name,
            file=upload,
            file_size=upload.size,
            file_type=document_extension(upload.name),
            upload_date=now,
        )
        result.documents.append(repository.save_document(document))

    logger.info(
        "claim_submitted",
        claim_id=claim.pk,
        lecturer_id=lecturer.pk,
        amount=str(claim.amount),
        documents=len(result.documents),
        dropped=len(result.rejected_files),
    )
    notify_coordinators(claim)
    return result


def decide_claim(
    repository: ClaimRepository,
    claim_id: int,
    approved: bool,
    approver,
    approver_role: UserProfile.Role,
    comments: str = "",
    now: Optional[datetime] = None,
) -> Optional[Approval]:
    """Approve or reject a claim and append the decision to its audit trail.

    Returns ``None`` when the claim does not exist. The current status is not
    checked, so deciding an already approved or rejected claim overwrites the
    status and records another approval.
    """
    now = now or timezone.now()
    role = UserProfile.Role(approver_role)
    claim = repository.get_claim(claim_id)
    if claim is None:
        logger.info("claim_not_found", claim_id=claim_id, action="decide")
        return None

    previous_status = claim.status
    claim.status = Claim.Status.APPROVED if approved else Claim.Status.REJECTED
    claim.modified_at = now
    repository.save_claim(claim)

    approval = Approval(
        claim=claim,
        approver=approver,
        approver_role=role,
        approval_date=now,
        is_approved=approved,
        comments=comments,
        approval_order=len(repository.approvals_for_claim(claim.pk)) + 1,
    )
    repository.save_approval(approval)
    logger.info(
        "claim_decided",
        claim_id=claim.pk,
        approved=approved,
        approver_id=approver.pk,
        approver_role=role.value,
        previous_status=previous_status,
        approval_order=approval.approval_order,
    )
    notify_lecturer_of_decision(claim, approved, comments)
    return approval


def edit_claim(
    repository: ClaimRepository,
    claim_id: int,
    hours_worked: Number,
    hourly_rate: Number,
    comments: str,
    status: Optional[Claim.Status] = None,
    now: Optional[datetime] = None,
) -> Optional[Claim]:
    """HR correction of a claim's figures and, optionally, its status."""
    now = now or timezone.now()
    claim = repository.get_claim(claim_id)
    if claim is None:
        logger.info("claim_not_found", claim_id=claim_id, action="edit")
        return None
    validate_hours_and_rate(hours_worked, hourly_rate)

    original_amount = claim.amount
    claim.hours_worked = to_decimal(hours_worked)
    claim.hourly_rate = to_decimal(hourly_rate)
    claim.amount = compute_amount(hours_worked, hourly_rate)
    claim.submission_comments = comments
    if status is not None:
        claim.status = Claim.Status(status)
    claim.modified_at = now
    repository.save_claim(claim)
    logger.info(
        "claim_edited",
        claim_id=claim.pk,
        original_amount=str(original_amount),
        amount=str(claim.amount),
        status=claim.status,
    )
    return claim


def _one_year_after(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        # 29 February
        return day.replace(year=day.year + 1, day=28)


def register_user(
    repository: ClaimRepository,
    user,
    role: UserProfile.Role,
    now: Optional[datetime] = None,
) -> Optional[Lecturer]:
    """Give a newly created account its role and, for lecturers, a rate card.

    Lecturers start in the "General" department at 150.00 an hour on a one-year
    contract, with employee number ``EMP`` plus the zero-padded user id.
    Returns the new ``Lecturer`` or ``None`` for other roles.
    """
    today = timezone.localdate(now or timezone.now())
    role = UserProfile.Role(role)
    profile = UserProfile.ensure_for_user(user)
    profile.role = role
    repository.save_profile(profile)

    lecturer = None
    if role == UserProfile.Role.LECTURER:
        lecturer = repository.save_lecturer(
            Lecturer(
                user=user,
                employee_number=f"EMP{user.pk:03d}",
                department=REGISTERED_DEPARTMENT,
                hourly_rate=REGISTERED_HOURLY_RATE,
                contract_start=today,
                contract_end=_one_year_after(today),
            )
        )
    logger.info(
        "user_registered",
        user_id=user.pk,
        role=role.value,
        lecturer_id=lecturer.pk if lecturer else None,
    )
    return lecturer
