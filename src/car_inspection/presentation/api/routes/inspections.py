"""Inspection report endpoints.

Domain errors raised by the services are turned into HTTP responses by the
application's exception handlers.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from starlette.concurrency import run_in_threadpool

from ....domain.value_objects.auth import RequesterIdentity, UserRole
from ....infrastructure.rendering.qr_code import render_qr_svg
from ....infrastructure.rendering.report_pdf import render_report_pdf
from ....infrastructure.services import get_service_factory
from ..config import Settings, get_settings
from ..middleware.auth import get_requester, require_roles
from ..schemas.inspection_schemas import (
    CreateReportRequest,
    DeleteReportResponse,
    PublicReportResponse,
    PublishResponse,
    ReportListResponse,
    ReportResponse,
    UpdateReportRequest,
    public_report_to_response,
    report_to_response,
)

router = APIRouter()

writer_required = require_roles(UserRole.ADMIN, UserRole.INSPECTOR)


async def get_inspection_services(service_factory=Depends(get_service_factory)):
    """Dependency providing report and part services for one request."""
    async with service_factory.get_inspection_services() as services:
        yield services


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    request: CreateReportRequest,
    requester: RequesterIdentity = Depends(writer_required),
    services=Depends(get_inspection_services)
) -> ReportResponse:
    """
    Create a draft inspection report.

    The report number is assigned by the server; the report stays private
    until it is published.
    """
    report = await services.reports.create_report(requester, request.car_id, request.to_fields())
    return report_to_response(report)


@router.get("", response_model=ReportListResponse)
async def list_reports(
    status_filter: Optional[str] = Query(None, alias="status", description="published or draft"),
    page: int = Query(1),
    limit: int = Query(10),
    requester: RequesterIdentity = Depends(get_requester),
    services=Depends(get_inspection_services)
) -> ReportListResponse:
    """List the reports visible to the caller, newest first."""
    result = await services.reports.list_reports(requester, status_filter, page=page, limit=limit)
    return ReportListResponse(
        items=[report_to_response(report) for report in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages
    )


@router.get("/public/{shareable_link}", response_model=PublicReportResponse)
async def get_public_report(
    shareable_link: str,
    services=Depends(get_inspection_services)
) -> PublicReportResponse:
    """
    Read a published report through its shareable link.

    Every successful read counts as one view. Unknown links and unpublished
    reports both answer 404.
    """
    report = await services.reports.get_by_shareable_link(shareable_link)
    parts = await services.parts.list_parts(report.id)
    return public_report_to_response(report, parts)


@router.get("/report/{shareable_link}", response_model=PublicReportResponse)
async def get_public_report_alias(
    shareable_link: str,
    services=Depends(get_inspection_services)
) -> PublicReportResponse:
    """Alias of the public report endpoint."""
    return await get_public_report(shareable_link, services)


@router.get("/download/{shareable_link}")
async def download_report_pdf(
    shareable_link: str,
    services=Depends(get_inspection_services),
    settings: Settings = Depends(get_settings)
) -> Response:
    """Download a published report as PDF. Downloads are not counted as views."""
    report = await services.reports.get_published_report(shareable_link)
    grouped = await services.parts.list_parts(report.id)
    parts = [part for category_parts in grouped.values() for part in category_parts]

    content = await run_in_threadpool(
        render_report_pdf, report, parts, settings.public_url_for(shareable_link)
    )
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="inspection-report-{report.report_number}.pdf"'
        }
    )


@router.get("/public/{shareable_link}/qr")
async def get_report_qr_code(
    shareable_link: str,
    services=Depends(get_inspection_services),
    settings: Settings = Depends(get_settings)
) -> Response:
    """SVG QR code pointing at the report's public page."""
    await services.reports.get_published_report(shareable_link)
    svg = await run_in_threadpool(render_qr_svg, settings.public_url_for(shareable_link))
    return Response(content=svg, media_type="image/svg+xml")


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: UUID,
    requester: RequesterIdentity = Depends(get_requester),
    services=Depends(get_inspection_services)
) -> ReportResponse:
    """Get a report by ID."""
    report = await services.reports.get_report(report_id, requester)
    return report_to_response(report)


@router.put("/{report_id}", response_model=ReportResponse)
async def update_report(
    report_id: UUID,
    request: UpdateReportRequest,
    requester: RequesterIdentity = Depends(writer_required),
    services=Depends(get_inspection_services)
) -> ReportResponse:
    """
    Partially update a report.

    Report number, car and inspector are fixed at creation, and publishing
    state is only changed through the publish endpoints.
    """
    report = await services.reports.update_report(report_id, requester, request.to_fields())
    return report_to_response(report)


@router.delete("/{report_id}", response_model=DeleteReportResponse)
async def delete_report(
    report_id: UUID,
    requester: RequesterIdentity = Depends(writer_required),
    services=Depends(get_inspection_services)
) -> DeleteReportResponse:
    """Delete a report together with its car parts."""
    removed_parts = await services.reports.delete_report(report_id, requester)
    return DeleteReportResponse(message="Inspection report deleted", deleted_parts=removed_parts)


@router.put("/{report_id}/publish", response_model=PublishResponse)
async def publish_report(
    report_id: UUID,
    requester: RequesterIdentity = Depends(writer_required),
    services=Depends(get_inspection_services),
    settings: Settings = Depends(get_settings)
) -> PublishResponse:
    """Publish a report. The shareable link is created on the first publish and kept afterwards."""
    report = await services.reports.publish_report(report_id, requester)
    return PublishResponse(
        report=report_to_response(report),
        shareable_link=report.shareable_link,
        public_url=settings.public_url_for(report.shareable_link)
    )


@router.put("/{report_id}/unpublish", response_model=PublishResponse)
async def unpublish_report(
    report_id: UUID,
    requester: RequesterIdentity = Depends(writer_required),
    services=Depends(get_inspection_services)
) -> PublishResponse:
    """Withdraw a report from public access; its link is retained."""
    report = await services.reports.unpublish_report(report_id, requester)
    return PublishResponse(report=report_to_response(report), shareable_link=report.shareable_link)
