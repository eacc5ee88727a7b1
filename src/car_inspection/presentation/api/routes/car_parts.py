"""Car part endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from ....domain.value_objects.auth import RequesterIdentity, UserRole
from ....infrastructure.services import get_service_factory
from ..middleware.auth import get_requester, require_roles
from ..schemas.car_part_schemas import (
    CarPartResponse,
    CreatePartRequest,
    GroupedPartsResponse,
    UpdatePartRequest,
    part_to_response,
)

router = APIRouter()

writer_required = require_roles(UserRole.ADMIN, UserRole.INSPECTOR)


async def get_car_part_service(service_factory=Depends(get_service_factory)):
    """Dependency to get car part service."""
    async with service_factory.get_car_part_service() as car_part_service:
        yield car_part_service


@router.post("", response_model=CarPartResponse, status_code=status.HTTP_201_CREATED)
async def add_part(
    request: CreatePartRequest,
    requester: RequesterIdentity = Depends(writer_required),
    car_part_service=Depends(get_car_part_service)
) -> CarPartResponse:
    """Record the condition of one part on a report."""
    part = await car_part_service.add_part(request.inspection_report_id, requester, request.to_fields())
    return part_to_response(part)


@router.get("/inspection/{report_id}", response_model=GroupedPartsResponse)
async def list_parts(
    report_id: UUID,
    requester: RequesterIdentity = Depends(get_requester),
    car_part_service=Depends(get_car_part_service)
) -> GroupedPartsResponse:
    """Parts of a report grouped by category."""
    grouped = await car_part_service.list_parts(report_id, requester)
    return GroupedPartsResponse(
        inspection_report_id=report_id,
        total=sum(len(parts) for parts in grouped.values()),
        parts={
            category.value: [part_to_response(part) for part in parts]
            for category, parts in grouped.items()
        }
    )


@router.get("/{part_id}", response_model=CarPartResponse)
async def get_part(
    part_id: UUID,
    requester: RequesterIdentity = Depends(get_requester),
    car_part_service=Depends(get_car_part_service)
) -> CarPartResponse:
    """Get a car part by ID."""
    part = await car_part_service.get_part(part_id, requester)
    return part_to_response(part)


@router.put("/{part_id}", response_model=CarPartResponse)
async def update_part(
    part_id: UUID,
    request: UpdatePartRequest,
    requester: RequesterIdentity = Depends(writer_required),
    car_part_service=Depends(get_car_part_service)
) -> CarPartResponse:
    """Partially update a car part. A part cannot move to another report."""
    part = await car_part_service.update_part(part_id, requester, request.to_fields())
    return part_to_response(part)


@router.delete("/{part_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_part(
    part_id: UUID,
    requester: RequesterIdentity = Depends(writer_required),
    car_part_service=Depends(get_car_part_service)
) -> None:
    """Delete one car part."""
    await car_part_service.remove_part(part_id, requester)
