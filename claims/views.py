"""Views orchestrating the contract monthly claim workflow."""
from __future__ import annotations

import csv
from typing import Iterable

import structlog
from django.contrib import messages
from django.contrib.auth import login
from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin, UserPassesTestMixin
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.utils import timezone
from django.views import View
from django.views.generic import FormView, TemplateView

from .analytics import build_report, filter_claims_by_period, lecturer_directory, period_label
from .exports import render_pdf, report_lines, report_rows
from .forms import ClaimDecisionForm, ClaimSubmissionForm, HREditClaimForm, RegisterForm, ReportFilterForm
from .models import Claim, UserProfile
from .repositories import ClaimRepository
from .workflow import approval_queue, assess_claim, decide_claim, edit_claim, register_user, submit_claim

logger = structlog.get_logger(__name__)

Role = UserProfile.Role
REVIEWER_ROLES = (Role.COORDINATOR, Role.MANAGER)
PERSISTENCE_ERROR_MESSAGE = "Something went wrong while saving your claim. Please try again."


def _role_of(user) -> Role:
    return Role(UserProfile.ensure_for_user(user).role)


class RepositoryMixin:
    repository_class = ClaimRepository

    def get_repository(self) -> ClaimRepository:
        return self.repository_class()


class RoleRequiredMixin(UserPassesTestMixin):
    """Gatekeeper for views limited to particular workflow roles."""

    allowed_roles: Iterable[Role] = ()

    def test_func(self):
        user = self.request.user
        return user.is_authenticated and _role_of(user) in self.allowed_roles

    def handle_no_permission(self):
        if not self.request.user.is_authenticated:
            return super().handle_no_permission()
        messages.error(self.request, "You do not have access to that section.")
        return redirect("claims:dashboard")


class RegisterView(RepositoryMixin, FormView):
    """Creates an account with its role, then signs the new user in."""

    template_name = "registration/register.html"
    form_class = RegisterForm

    def dispatch(self, request, *args, **kwargs):
        if request.user.is_authenticated:
            return redirect("claims:dashboard")
        return super().dispatch(request, *args, **kwargs)

    def form_valid(self, form: RegisterForm):
        try:
            user = form.save()
            register_user(self.get_repository(), user, form.cleaned_data["role"])
        except DatabaseError:
            logger.exception("registration_failed", username=form.cleaned_data["username"])
            messages.error(self.request, "Something went wrong while creating your account. Please try again.")
            return self.form_invalid(form)

        login(self.request, user)
        messages.success(self.request, f"Welcome, {user.get_full_name() or user.get_username()}.")
        return redirect("claims:dashboard")


class DashboardView(LoginRequiredMixin, RepositoryMixin, TemplateView):
    """Everyone lands here; what is shown depends on the user's role."""

    template_name = "claims/dashboard.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        repository = self.get_repository()
        role = _role_of(self.request.user)
        lecturer = getattr(self.request.user, "lecturer", None)
        claims = repository.claims_for_lecturer(lecturer.pk) if lecturer else []
        context.update(
            {
                "role": role,
                "lecturer": lecturer,
                "pending_claims": [claim for claim in claims if claim.is_pending],
                "approved_claims": [claim for claim in claims if claim.status == Claim.Status.APPROVED],
                "rejected_claims": [claim for claim in claims if claim.status == Claim.Status.REJECTED],
                "awaiting_review": (
                    len(approval_queue(repository.all_claims(), role)) if role in REVIEWER_ROLES else 0
                ),
            }
        )
        return context


class SubmitClaimView(LoginRequiredMixin, RoleRequiredMixin, RepositoryMixin, FormView):
    """Handles the monthly claim submission form, including file uploads."""

    template_name = "claims/submit.html"
    form_class = ClaimSubmissionForm
    allowed_roles = (Role.LECTURER,)

    def dispatch(self, request, *args, **kwargs):
        user = request.user
        if user.is_authenticated and _role_of(user) == Role.LECTURER and not hasattr(user, "lecturer"):
            messages.error(request, "Your account has no lecturer profile; contact HR.")
            return redirect("claims:dashboard")
        return super().dispatch(request, *args, **kwargs)

    def get_initial(self):
        initial = super().get_initial()
        initial["hourly_rate"] = self.request.user.lecturer.hourly_rate
        return initial

    def form_valid(self, form: ClaimSubmissionForm):
        try:
            result = submit_claim(
                self.get_repository(),
                self.request.user.lecturer,
                form.cleaned_data["hours_worked"],
                form.cleaned_data["hourly_rate"],
                comments=form.cleaned_data["comments"],
                files=form.cleaned_data["documents"],
            )
        except ValidationError as exc:
            form.add_error(None, exc)
            return self.form_invalid(form)
        except DatabaseError:
            logger.exception("claim_submission_failed", user_id=self.request.user.pk)
            messages.error(self.request, PERSISTENCE_ERROR_MESSAGE)
            return self.form_invalid(form)

        for rejected in result.rejected_files:
            messages.warning(self.request, f"Attachment skipped: {rejected.reason}")
        messages.success(
            self.request,
            f"Claim #{result.claim.pk} for {result.claim.amount} submitted with "
            f"{len(result.documents)} document(s).",
        )
        return redirect("claims:status", claim_id=result.claim.pk)


class ClaimStatusView(LoginRequiredMixin, RepositoryMixin, View):
    """Shows a single claim, its documents and its approval history."""

    template_name = "claims/status.html"

    def get(self, request, claim_id: int):
        repository = self.get_repository()
        claim = repository.get_claim(claim_id)
        role = _role_of(request.user)
        own_claim = claim is not None and claim.lecturer.user_id == request.user.pk
        if claim is None or not (own_claim or role != Role.LECTURER):
            return render(request, self.template_name, {"claim": None, "claim_id": claim_id}, status=404)
        context = {
            "claim": claim,
            "claim_id": claim_id,
            "approvals": repository.approvals_for_claim(claim.pk),
            "documents": repository.documents_for_claim(claim.pk),
            "assessment": assess_claim(claim, role, timezone.now()),
        }
        return render(request, self.template_name, context)


class TrackClaimsView(LoginRequiredMixin, RepositoryMixin, TemplateView):
    """Lecturers see their own claims; reviewers and HR see every claim."""

    template_name = "claims/track.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        repository = self.get_repository()
        if _role_of(self.request.user) == Role.LECTURER:
            lecturer = getattr(self.request.user, "lecturer", None)
            claims = repository.claims_for_lecturer(lecturer.pk) if lecturer else []
        else:
            claims = repository.all_claims()
        context["claims"] = claims
        return context


class ApprovalQueueView(LoginRequiredMixin, RoleRequiredMixin, RepositoryMixin, TemplateView):
    """Coordinators and managers triage submitted claims here."""

    template_name = "claims/approval_queue.html"
    allowed_roles = REVIEWER_ROLES

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        repository = self.get_repository()
        role = _role_of(self.request.user)
        recent_decisions = sorted(
            (approval for approval in repository.all_approvals() if approval.approver_id == self.request.user.pk),
            key=lambda approval: approval.approval_date,
            reverse=True,
        )[:10]
        context.update(
            {
                "queue": approval_queue(repository.all_claims(), role),
                "recent_decisions": recent_decisions,
                "decision_form": ClaimDecisionForm(),
            }
        )
        return context


@login_required
def review_claim(request, claim_id: int, action: str):
    """Approve or reject a claim on behalf of a coordinator or manager."""

    role = _role_of(request.user)
    if role not in REVIEWER_ROLES:
        messages.error(request, "You are not authorised to decide claims.")
        return redirect("claims:dashboard")

    decision_map = {"approve": True, "reject": False}
    if action not in decision_map:
        messages.error(request, "Unknown approval action.")
        return redirect("claims:approval_queue")

    if request.method != "POST":
        messages.error(request, "Submit your decision using the provided form.")
        return redirect("claims:approval_queue")
    form = ClaimDecisionForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Submit your decision using the provided form.")
        return redirect("claims:approval_queue")

    approved = decision_map[action]
    try:
        approval = decide_claim(
            ClaimRepository(),
            claim_id,
            approved,
            request.user,
            role,
            comments=form.cleaned_data["comments"],
        )
    except DatabaseError:
        logger.exception("claim_decision_failed", claim_id=claim_id, user_id=request.user.pk)
        messages.error(request, PERSISTENCE_ERROR_MESSAGE)
        return redirect("claims:approval_queue")

    if approval is None:
        messages.error(request, f"Claim #{claim_id} was not found.")
    elif approved:
        messages.success(request, f"Approved claim #{claim_id}.")
    else:
        messages.warning(request, f"Rejected claim #{claim_id}.")
    return redirect("claims:approval_queue")


class HREditClaimView(LoginRequiredMixin, RoleRequiredMixin, RepositoryMixin, View):
    """HR corrections to hours, rate, comments and status."""

    template_name = "claims/hr_edit.html"
    allowed_roles = (Role.HR,)

    def _not_found(self, request, claim_id: int):
        messages.error(request, f"Claim #{claim_id} was not found.")
        return redirect("claims:analytics")

    def get(self, request, claim_id: int):
        claim = self.get_repository().get_claim(claim_id)
        if claim is None:
            return self._not_found(request, claim_id)
        return render(request, self.template_name, {"claim": claim, "form": HREditClaimForm(instance=claim)})

    def post(self, request, claim_id: int):
        repository = self.get_repository()
        claim = repository.get_claim(claim_id)
        if claim is None:
            return self._not_found(request, claim_id)
        original_amount = claim.amount
        form = HREditClaimForm(request.POST, instance=claim)
        if form.is_valid():
            try:
                updated = edit_claim(
                    repository,
                    claim_id,
                    form.cleaned_data["hours_worked"],
                    form.cleaned_data["hourly_rate"],
                    form.cleaned_data["submission_comments"],
                    status=form.cleaned_data["status"],
                )
            except ValidationError as exc:
                form.add_error(None, exc)
            except DatabaseError:
                logger.exception("claim_edit_failed", claim_id=claim_id, user_id=request.user.pk)
                messages.error(request, PERSISTENCE_ERROR_MESSAGE)
            else:
                if updated is None:
                    return self._not_found(request, claim_id)
                messages.success(
                    request,
                    f"Updated claim #{claim_id}: amount {original_amount} -> {updated.amount}.",
                )
                return redirect("claims:status", claim_id=claim_id)
        return render(request, self.template_name, {"claim": claim, "form": form})


def _report_for(request, repository: ClaimRepository):
    filter_form = ReportFilterForm(request.GET or None)
    filters = {}
    if filter_form.is_valid():
        filters = filter_form.cleaned_data
    year, month = filters.get("year"), filters.get("month")
    names, departments = lecturer_directory(repository.all_lecturers())
    report = build_report(
        filter_claims_by_period(repository.all_claims(), year, month),
        names,
        departments,
        label=period_label(year, month),
    )
    return filter_form, report


class AnalyticsDashboardView(LoginRequiredMixin, RoleRequiredMixin, RepositoryMixin, TemplateView):
    """Aggregated claim insights for HR."""

    template_name = "claims/analytics.html"
    allowed_roles = (Role.HR,)

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        filter_form, report = _report_for(self.request, self.get_repository())
        context.update(
            {
                "report": report,
                "filter_form": filter_form,
                "export_params": self.request.GET.urlencode(),
            }
        )
        return context


class ReportExportView(LoginRequiredMixin, RoleRequiredMixin, RepositoryMixin, View):
    """Exports the HR report as CSV or PDF."""

    format: str = "csv"
    allowed_roles = (Role.HR,)

    def get(self, request, *args, **kwargs):
        _, report = _report_for(request, self.get_repository())
        if self.format == "csv":
            return self._export_csv(report)
        if self.format == "pdf":
            return self._export_pdf(report)
        messages.error(request, "Unsupported export format.")
        return redirect("claims:analytics")

    def _export_csv(self, report) -> HttpResponse:
        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = "attachment; filename=claims-report.csv"
        writer = csv.writer(response)
        writer.writerows(report_rows(report))
        return response

    def _export_pdf(self, report) -> HttpResponse:
        response = HttpResponse(content_type="application/pdf")
        response["Content-Disposition"] = "attachment; filename=claims-report.pdf"
        response.write(render_pdf("Contract Monthly Claims Report", report_lines(report)))
        return response
