"""Claim amount calculation and submission validation rules."""
from __future__ import annotations

import os
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from django.core.exceptions import ValidationError
from django.utils import timezone

Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal("0.01")

STANDARD_MONTHLY_HOURS = Decimal("160")
OVERTIME_MULTIPLIER = Decimal("1.5")

MAX_MONTHLY_HOURS = Decimal("744")
MAX_HOURLY_RATE = Decimal("500")
MAX_CLAIM_AMOUNT = Decimal("50000")
MAX_CLAIMS_PER_MONTH = 3

MAX_DOCUMENT_SIZE = 5 * 1024 * 1024
ALLOWED_DOCUMENT_EXTENSIONS = frozenset({"pdf", "doc", "docx", "jpg", "jpeg", "png"})


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def month_bucket(moment: datetime) -> str:
    """Return the "YYYY-MM" key used to group claims by month.

    Aware datetimes are bucketed in the configured local time zone.
    """
    if timezone.is_aware(moment):
        moment = timezone.localtime(moment)
    return moment.strftime("%Y-%m")


def compute_amount(hours_worked: Number, hourly_rate: Number) -> Decimal:
    """Pay due for a month of work.

    Hours beyond the standard 160 are paid at 1.5x the hourly rate. The result is
    rounded half away from zero to cents.
    """
    hours = to_decimal(hours_worked)
    rate = to_decimal(hourly_rate)
    if hours > STANDARD_MONTHLY_HOURS:
        overtime = hours - STANDARD_MONTHLY_HOURS
        amount = STANDARD_MONTHLY_HOURS * rate + overtime * rate * OVERTIME_MULTIPLIER
    else:
        amount = hours * rate
    return quantize_money(amount)


def validate_hours_and_rate(hours_worked: Number, hourly_rate: Number) -> None:
    hours = to_decimal(hours_worked)
    rate = to_decimal(hourly_rate)
    if hours > MAX_MONTHLY_HOURS:
        raise ValidationError(
            f"Hours worked exceeds the maximum of {MAX_MONTHLY_HOURS} hours per month.",
            code="max_hours",
        )
    if hours <= 0:
        raise ValidationError("Hours worked must be positive.", code="hours_not_positive")
    if rate > MAX_HOURLY_RATE:
        raise ValidationError(
            f"Hourly rate exceeds the maximum of {MAX_HOURLY_RATE:.2f}.",
            code="max_rate",
        )
    if rate <= 0:
        raise ValidationError("Hourly rate must be positive.", code="rate_not_positive")


def validate_submission(
    hours_worked: Number,
    hourly_rate: Number,
    lecturer_id: int,
    existing_claims_this_month: int,
) -> None:
    """Accept a claim submission or raise ``ValidationError`` for the first broken rule.

    Checks run in a fixed order: hours range, rate range, the monthly submission
    limit, then the amount cap. ``existing_claims_this_month`` is the number of
    claims ``lecturer_id`` has already filed in the current month bucket.
    """
    validate_hours_and_rate(hours_worked, hourly_rate)
    if existing_claims_this_month >= MAX_CLAIMS_PER_MONTH:
        raise ValidationError(
            f"Monthly submission limit of {MAX_CLAIMS_PER_MONTH} claims reached.",
            code="monthly_limit",
        )
    if compute_amount(hours_worked, hourly_rate) > MAX_CLAIM_AMOUNT:
        raise ValidationError(
            f"Claim amount exceeds the maximum limit of {MAX_CLAIM_AMOUNT:.2f}.",
            code="max_amount",
        )


def document_extension(file_name: str) -> str:
    return os.path.splitext(file_name)[1].lstrip(".").lower()


def validate_document(file_name: str, size: int) -> None:
    if size > MAX_DOCUMENT_SIZE:
        raise ValidationError(
            f"{file_name} is larger than the 5 MB upload limit.",
            code="file_too_large",
        )
    if document_extension(file_name) not in ALLOWED_DOCUMENT_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_DOCUMENT_EXTENSIONS))
        raise ValidationError(
            f"{file_name} is not an accepted file type ({allowed}).",
            code="file_type",
        )
