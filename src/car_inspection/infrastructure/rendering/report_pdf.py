"""PDF export of a published inspection report."""

import io
from typing import Iterable, Optional

from reportlab.graphics import renderPDF
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from src.car_inspection.application.services.car_part_service import group_parts_by_category
from src.car_inspection.domain.entities.car_part import CarPart
from src.car_inspection.domain.entities.inspection_report import InspectionReport

from .qr_code import build_qr_drawing

MARGIN = 20 * mm
QR_SIZE = 35 * mm


def _money(amount: Optional[float], currency: str) -> str:
    if amount is None:
        return "-"
    return f"{currency} {amount:,.0f}"


class _PageWriter:
    """Writes lines top to bottom, starting a new page when one fills up."""

    def __init__(self, pdf: canvas.Canvas):
        self.pdf = pdf
        self.width, self.height = A4
        self.y = self.height - MARGIN

    def line(self, text: str, size: int = 10, dy: float = 6 * mm, bold: bool = False, indent: float = 0):
        self.pdf.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        self.pdf.drawString(MARGIN + indent, self.y, text)
        self.y -= dy
        if self.y < MARGIN:
            self.pdf.showPage()
            self.y = self.height - MARGIN

    def heading(self, text: str) -> None:
        self.y -= 4 * mm
        self.line(text, size=12, dy=7 * mm, bold=True)

    def gap(self, amount: float = 3 * mm) -> None:
        self.y -= amount


def render_report_pdf(report: InspectionReport, parts: Iterable[CarPart], public_url: str) -> bytes:
    """Render a report and its parts as an A4 PDF.

    Args:
        report: The published report
        parts: Car parts recorded for the report
        public_url: Public page URL, printed and encoded as a QR code

    Returns:
        Raw PDF bytes
    """
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Inspection Report {report.report_number}")
    writer = _PageWriter(pdf)

    # Header with QR code in the top right corner
    renderPDF.draw(
        build_qr_drawing(public_url, QR_SIZE), pdf,
        writer.width - MARGIN - QR_SIZE, writer.height - MARGIN - QR_SIZE + 5 * mm
    )
    writer.line("Vehicle Inspection Report", size=16, dy=9 * mm, bold=True)
    writer.line(f"Report number: {report.report_number}")
    writer.line(f"Inspection date: {report.inspection_date.strftime('%Y-%m-%d')}")
    writer.line(f"Overall rating: {report.overall_rating:g} / 10 ({report.overall_condition.value})")
    if report.inspection_location and not report.inspection_location.is_empty:
        location = ", ".join(part for part in (report.inspection_location.address,
                                               report.inspection_location.city) if part)
        writer.line(f"Location: {location}")
    writer.line(f"Online version: {public_url}", size=8, dy=5 * mm)

    summary = report.inspection_summary
    writer.heading("Summary")
    writer.line(
        f"{summary.total_checkpoints} checkpoints: {summary.passed_checkpoints} passed, "
        f"{summary.warning_checkpoints} warnings, {summary.failed_checkpoints} failed, "
        f"{summary.not_applicable_checkpoints} not applicable"
    )

    assessment = report.overall_assessment
    if assessment is not None:
        writer.heading("Assessment")
        writer.line(f"Recommendation: {assessment.recommendation.value}")
        writer.line(f"Estimated market value: {_money(assessment.estimated_market_value, assessment.currency)}")
        writer.line(f"Estimated repair cost: {_money(assessment.estimated_repair_cost, assessment.currency)}")
        for strength in assessment.strengths:
            writer.line(f"+ {strength}", indent=4 * mm)
        for weakness in assessment.weaknesses:
            writer.line(f"- {weakness}", indent=4 * mm)
        for issue in assessment.major_issues:
            severity = issue.severity.value if issue.severity else "Unrated"
            writer.line(f"! {issue.category}: {issue.issue} ({severity})", indent=4 * mm)
        if assessment.inspector_notes:
            writer.line(f"Inspector notes: {assessment.inspector_notes}", size=9, dy=5 * mm)

    if report.checkpoints:
        writer.heading("Checkpoints")
        current_section = None
        for checkpoint in report.checkpoints:
            if checkpoint.section != current_section:
                current_section = checkpoint.section
                writer.gap(2 * mm)
                writer.line(current_section.value.replace("_", " ").title(), size=11, bold=True)
            writer.line(
                f"{checkpoint.name}: {checkpoint.condition} [{checkpoint.outcome.value}]",
                indent=4 * mm
            )
            if checkpoint.notes:
                writer.line(f"Notes: {checkpoint.notes}", size=9, dy=5 * mm, indent=8 * mm)

    grouped = group_parts_by_category(parts)
    if grouped:
        writer.heading("Parts")
        for category, category_parts in grouped.items():
            writer.gap(2 * mm)
            writer.line(category.value.title(), size=11, bold=True)
            for part in category_parts:
                writer.line(
                    f"{part.part_name}: {part.condition.value}, score {part.condition_score:g}/10, "
                    f"health {part.health_score}%",
                    indent=4 * mm
                )
                for issue in part.issues:
                    kind = issue.type.value if issue.type else "issue"
                    severity = issue.severity.value if issue.severity else "unrated"
                    writer.line(
                        f"{kind} ({severity}): {issue.description}",
                        size=9, dy=5 * mm, indent=8 * mm
                    )

    if assessment is not None and assessment.disclaimers:
        writer.heading("Disclaimers")
        for disclaimer in assessment.disclaimers:
            writer.line(disclaimer, size=8, dy=4 * mm)

    pdf.showPage()
    pdf.save()
    content = buffer.getvalue()
    buffer.close()
    return content
