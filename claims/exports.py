"""CSV rows and PDF rendering for the HR claims report."""
from __future__ import annotations

from io import BytesIO
from typing import Iterable, List, Sequence

from .analytics import ReportMetrics

LINES_PER_PAGE = 44


def report_rows(report: ReportMetrics) -> List[List[object]]:
    """Rows for ``csv.writer``; blank rows separate the sections."""
    rows: List[List[object]] = [
        ["Contract Monthly Claims Report"],
        [f"Period: {report.period_label}"],
        [f"Generated: {report.generated_at:%Y-%m-%d %H:%M:%S}"],
        [],
        ["Metric", "Value"],
        ["Total claims", report.total_claims],
        ["Approved claims", report.approved_claims],
        ["Rejected claims", report.rejected_claims],
        ["Pending claims", report.pending_approval_count],
        ["Paid claims", report.paid_claims],
        ["Total amount approved", report.total_amount_approved],
        ["Total amount paid", report.total_amount_paid],
        ["Average approved claim", report.average_claim_amount],
        ["Approval rate (%)", report.approval_rate],
        ["Payment processing rate (%)", report.payment_processing_rate],
        [],
        ["Top Lecturers"],
        ["Lecturer", "Department", "Claims", "Total", "Average", "Rating"],
    ]
    for entry in report.top_lecturers:
        rows.append(
            [
                entry.lecturer_name,
                entry.department,
                entry.claim_count,
                entry.total_amount,
                entry.average_per_claim,
                entry.performance_rating.label,
            ]
        )
    rows.extend([[], ["Monthly Breakdown"], ["Month", "Claims", "Total", "Average"]])
    for month in report.monthly_breakdown:
        rows.append([month.month_name, month.claim_count, month.total_amount, month.monthly_average])
    rows.extend([[], ["Departments"], ["Department", "Lecturers", "Claims", "Total", "Average"]])
    for stat in report.department_stats:
        rows.append(
            [stat.department, stat.lecturer_count, stat.total_claims, stat.total_amount, stat.average_claim_amount]
        )
    return rows


def report_lines(report: ReportMetrics) -> List[str]:
    lines = [
        f"Period: {report.period_label}",
        report.summary,
        "",
        f"Claims: {report.total_claims} total, {report.approved_claims} approved, "
        f"{report.rejected_claims} rejected, {report.pending_approval_count} pending, {report.paid_claims} paid",
        f"Approved: {report.total_amount_approved:,.2f}  Paid: {report.total_amount_paid:,.2f}  "
        f"Average: {report.average_claim_amount:,.2f}",
        f"Payment processing rate: {report.payment_processing_rate}%",
        "",
        "Top lecturers:",
    ]
    for entry in report.top_lecturers:
        lines.append(
            f"  - {entry.lecturer_name}: {entry.total_amount:,.2f} over {entry.claim_count} claim(s) "
            f"({entry.performance_rating.label})"
        )
    lines.append("")
    lines.append("Monthly breakdown:")
    for month in report.monthly_breakdown:
        lines.append(f"  - {month.month_name}: {month.total_amount:,.2f} ({month.claim_count} claim(s))")
    lines.append("")
    lines.append("Departments:")
    for stat in report.department_stats:
        lines.append(
            f"  - {stat.department}: {stat.total_claims} claim(s) from {stat.lecturer_count} lecturer(s), "
            f"{stat.total_amount:,.2f}"
        )
    return lines


def _escape_pdf_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace("(", "\\(")
        .replace(")", "\\)")
        .replace("\r", "")
        .replace("\n", " ")
    )


def _page_stream(title: str, lines: Sequence[str]) -> bytes:
    content = ["BT", "/F1 16 Tf", "72 760 Td", f"({_escape_pdf_text(title)}) Tj", "/F1 11 Tf", "16 TL"]
    for line in lines:
        content.append("T*")
        if line:
            # Type1 Helvetica only covers Latin-1.
            safe = line.encode("latin-1", "replace").decode("latin-1")
            content.append(f"({_escape_pdf_text(safe)}) Tj")
    content.append("ET")
    body = ("\n".join(content) + "\n").encode("latin-1")
    return f"<< /Length {len(body)} >>\nstream\n".encode("latin-1") + body + b"endstream"


def render_pdf(title: str, lines: Iterable[str]) -> bytes:
    """Lay ``lines`` out over as many Letter pages as needed in a bare PDF 1.4 file."""
    lines = list(lines)
    pages = [lines[start:start + LINES_PER_PAGE] for start in range(0, len(lines), LINES_PER_PAGE)] or [[]]

    # Object numbering: 1 catalog, 2 page tree, 3 font, then a page/content pair per page.
    page_numbers = [4 + index * 2 for index in range(len(pages))]
    kids = " ".join(f"{number} 0 R" for number in page_numbers)
    objects: List[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Count {len(pages)} /Kids [{kids}] >>".encode("latin-1"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for index, page_lines in enumerate(pages):
        page_title = title if index == 0 else f"{title} (page {index + 1})"
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Contents {page_numbers[index] + 1} 0 R /Resources << /Font << /F1 3 0 R >> >> >>"
            ).encode("latin-1")
        )
        objects.append(_page_stream(page_title, page_lines))

    buffer = BytesIO()
    buffer.write(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n")
    offsets = []
    for number, obj in enumerate(objects, start=1):
        offsets.append(buffer.tell())
        buffer.write(f"{number} 0 obj\n".encode("latin-1"))
        buffer.write(obj)
        buffer.write(b"\nendobj\n")

    xref_position = buffer.tell()
    buffer.write(f"xref\n0 {len(objects) + 1}\n".encode("latin-1"))
    buffer.write(b"0000000000 65535 f \n")
    for offset in offsets:
        buffer.write(f"{offset:010} 00000 n \n".encode("latin-1"))
    buffer.write(
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_position}\n%%EOF".encode("latin-1")
    )
    return buffer.getvalue()
