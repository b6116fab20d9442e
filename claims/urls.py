"""URL routing for claim flows."""
from django.urls import path

from . import views

app_name = "claims"

urlpatterns = [
    path("", views.DashboardView.as_view(), name="dashboard"),
    path("accounts/register/", views.RegisterView.as_view(), name="register"),
    path("submit/", views.SubmitClaimView.as_view(), name="submit"),
    path("claims/<int:claim_id>/", views.ClaimStatusView.as_view(), name="status"),
    path("track/", views.TrackClaimsView.as_view(), name="track"),
    path("approvals/", views.ApprovalQueueView.as_view(), name="approval_queue"),
    path(
        "approvals/<int:claim_id>/<str:action>/",
        views.review_claim,
        name="review_claim",
    ),
    path("hr/", views.AnalyticsDashboardView.as_view(), name="analytics"),
    path(
        "hr/claims/<int:claim_id>/edit/",
        views.HREditClaimView.as_view(),
        name="hr_edit",
    ),
    path(
        "hr/report/export/csv/",
        views.ReportExportView.as_view(format="csv"),
        name="report_export_csv",
    ),
    path(
        "hr/report/export/pdf/",
        views.ReportExportView.as_view(format="pdf"),
        name="report_export_pdf",
    ),
]
