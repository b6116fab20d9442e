"""Email notification helpers for claim workflow events."""
from __future__ import annotations

from typing import Iterable

import structlog
from django.conf import settings
from django.core.mail import send_mail

from .models import Claim, UserProfile
from .repositories import ClaimRepository

logger = structlog.get_logger(__name__)


def _send(to_addresses: Iterable[str], subject: str, message: str) -> None:
    recipients = [email for email in to_addresses if email]
    if not recipients:
        return
    sent = send_mail(
        subject=subject,
        message=message,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", "no-reply@example.com"),
        recipient_list=recipients,
        fail_silently=True,
    )
    logger.debug("notification_sent", subject=subject, recipients=len(recipients), sent=sent)


def _coordinator_addresses() -> list[str]:
    coordinators = ClaimRepository().users_with_role(UserProfile.Role.COORDINATOR)
    addresses = [user.email for user in coordinators if user.email]
    return addresses or list(getattr(settings, "CMCS_COORDINATOR_EMAILS", []))


def notify_coordinators(claim: Claim) -> None:
    """Let programme coordinators know a new claim is waiting for review."""
    lecturer = claim.lecturer
    subject = f"Claim #{claim.pk} submitted for {claim.month_year}"
    message = (
        f"{lecturer.display_name} submitted a claim for {claim.hours_worked} hour(s) "
        f"at {claim.hourly_rate}/h, totalling {claim.amount}.\n"
        "Please review it in the claims portal."
    )
    _send(_coordinator_addresses(), subject, message)


def notify_lecturer_of_decision(claim: Claim, approved: bool, comment: str = "") -> None:
    verdict = "approved" if approved else "rejected"
    subject = f"Claim #{claim.pk} {verdict}"
    message = (
        f"Hi {claim.lecturer.display_name},\n\n"
        f"Your claim for {claim.month_year} ({claim.amount}) was {verdict}.\n"
        f"Reviewer notes: {comment or 'No comment provided.'}"
    )
    _send([claim.lecturer.user.email], subject, message)
