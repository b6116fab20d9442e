"""Persistence collaborator used by the claim workflow.

The workflow never touches the ORM directly; it is handed a ``ClaimRepository``
and goes through the accessors below. Saving is an upsert keyed on the primary
key, and ids are handed out as ``max(id) + 1``.
"""
from __future__ import annotations

from typing import List, Optional, Type

from django.contrib.auth import get_user_model
from django.db import models
from django.db.models import Max

from .models import Approval, Claim, Document, Lecturer, UserProfile

User = get_user_model()


class ClaimRepository:
    """ORM-backed store for claims, approvals, documents and the people behind them."""

    def next_id(self, model: Type[models.Model]) -> int:
        highest = model.objects.aggregate(highest=Max("pk"))["highest"]
        return (highest or 0) + 1

    def _save(self, instance: models.Model) -> models.Model:
        if instance.pk is None:
            instance.pk = self.next_id(type(instance))
        instance.save()
        return instance

    # Claims

    def all_claims(self) -> List[Claim]:
        return list(Claim.objects.select_related("lecturer", "lecturer__user"))

    def get_claim(self, claim_id: int) -> Optional[Claim]:
        return Claim.objects.select_related("lecturer", "lecturer__user").filter(pk=claim_id).first()

    def claims_for_lecturer(self, lecturer_id: int) -> List[Claim]:
        return list(Claim.objects.filter(lecturer_id=lecturer_id))

    def claims_for_lecturer_in_month(self, lecturer_id: int, month_year: str) -> List[Claim]:
        return list(Claim.objects.in_month(lecturer_id, month_year))

    def save_claim(self, claim: Claim) -> Claim:
        return self._save(claim)

    # Approvals

    def all_approvals(self) -> List[Approval]:
        return list(Approval.objects.all())

    def approvals_for_claim(self, claim_id: int) -> List[Approval]:
        return list(Approval.objects.filter(claim_id=claim_id))

    def save_approval(self, approval: Approval) -> Approval:
        return self._save(approval)

    # Documents

    def documents_for_claim(self, claim_id: int) -> List[Document]:
        return list(Document.objects.filter(claim_id=claim_id, is_active=True))

    def save_document(self, document: Document) -> Document:
        return self._save(document)

    # People

    def save_lecturer(self, lecturer: Lecturer) -> Lecturer:
        return self._save(lecturer)

    def save_profile(self, profile: UserProfile) -> UserProfile:
        return self._save(profile)

    def all_lecturers(self) -> List[Lecturer]:
        return list(Lecturer.objects.select_related("user"))

    def get_lecturer(self, lecturer_id: int) -> Optional[Lecturer]:
        return Lecturer.objects.select_related("user").filter(pk=lecturer_id).first()

    def get_user(self, user_id: int) -> Optional[User]:
        return User.objects.filter(pk=user_id).first()

    def get_user_by_username(self, username: str) -> Optional[User]:
        return User.objects.filter(username__iexact=username).first()

    def users_with_role(self, role: UserProfile.Role) -> List[User]:
        return list(User.objects.filter(is_active=True, profile__role=role).order_by("username"))
