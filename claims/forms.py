"""Forms supporting the claim workflow."""
from __future__ import annotations

from typing import Any

from django import forms
from django.contrib.auth import get_user_model
from django.contrib.auth.forms import UserCreationForm

from .calculations import ALLOWED_DOCUMENT_EXTENSIONS, MAX_HOURLY_RATE, MAX_MONTHLY_HOURS
from .models import Claim, UserProfile
from .repositories import ClaimRepository

User = get_user_model()


class MultipleFileInput(forms.ClearableFileInput):
    allow_multiple_selected = True


class MultipleFileField(forms.FileField):
    """File field that hands back every selected upload as a list."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("widget", MultipleFileInput())
        super().__init__(*args, **kwargs)

    def clean(self, data, initial=None):
        single_clean = super().clean
        if isinstance(data, (list, tuple)):
            return [single_clean(item, initial) for item in data]
        if not data:
            return []
        return [single_clean(data, initial)]


class ClaimSubmissionForm(forms.Form):
    """Form a lecturer uses to file a monthly claim.

    Only the field shapes are checked here; business limits are applied by the
    workflow so the same rules hold outside the web layer.
    """

    hours_worked = forms.DecimalField(
        max_digits=6,
        decimal_places=2,
        label="Hours worked",
        widget=forms.NumberInput(attrs={"step": "0.5", "min": 0, "max": int(MAX_MONTHLY_HOURS)}),
    )
    hourly_rate = forms.DecimalField(
        max_digits=10,
        decimal_places=2,
        label="Hourly rate",
        widget=forms.NumberInput(attrs={"step": "0.01", "min": 0, "max": int(MAX_HOURLY_RATE)}),
    )
    comments = forms.CharField(
        required=False,
        max_length=500,
        widget=forms.Textarea(attrs={"rows": 3}),
        label="Comments",
    )
    documents = MultipleFileField(
        required=False,
        label="Supporting documents",
        help_text="Accepted: " + ", ".join(sorted(ALLOWED_DOCUMENT_EXTENSIONS)) + " (max 5 MB each).",
    )


class ClaimDecisionForm(forms.Form):
    """Optional comment a reviewer can attach to an approval or rejection."""

    comments = forms.CharField(
        required=False,
        max_length=500,
        widget=forms.Textarea(attrs={"rows": 2, "placeholder": "Add an optional note for the lecturer"}),
        label="Comment",
    )


class HREditClaimForm(forms.ModelForm):
    """Fields HR may correct on an existing claim; the amount is always recomputed."""

    class Meta:
        model = Claim
        fields = ["hours_worked", "hourly_rate", "submission_comments", "status"]
        widgets = {
            "hours_worked": forms.NumberInput(attrs={"step": "0.5", "min": 0}),
            "hourly_rate": forms.NumberInput(attrs={"step": "0.01", "min": 0}),
            "submission_comments": forms.Textarea(attrs={"rows": 3}),
        }


class ReportFilterForm(forms.Form):
    """Filters the HR report by year and optional month."""

    year = forms.IntegerField(min_value=2000, max_value=2100, required=False, label="Year")
    month = forms.IntegerField(min_value=1, max_value=12, required=False, label="Month")

    def clean(self):
        cleaned = super().clean()
        month = cleaned.get("month")
        year = cleaned.get("year")
        if month and not year:
            raise forms.ValidationError("Select a year when filtering by month.")
        return cleaned


class RegisterForm(UserCreationForm):
    """Self-service sign-up; the chosen role decides which pages the account sees."""

    role = forms.ChoiceField(choices=UserProfile.Role.choices, initial=UserProfile.Role.LECTURER)

    class Meta(UserCreationForm.Meta):
        model = User
        fields = ("username", "first_name", "last_name", "email")

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.fields["first_name"].required = True
        self.fields["last_name"].required = True

    def clean_username(self):
        username = self.cleaned_data["username"]
        if ClaimRepository().get_user_by_username(username) is not None:
            raise forms.ValidationError("Username already exists.", code="duplicate_username")
        return username

    def save(self, commit: bool = True):
        user = super().save(commit=False)
        if not user.email:
            user.email = f"{user.username}@cmcs.example"
        if commit:
            user.save()
        return user
