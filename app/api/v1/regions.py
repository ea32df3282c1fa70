"""Regions API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.v1.dependencies import get_region_service
from app.api.v1.utils import calculate_pagination_window
from app.models.region import RegionCreate, RegionResponse, RegionUpdate
from app.services.regions import RegionService

router = APIRouter(prefix="/regions", tags=["regions"])


@router.get("/containing/point", response_model=list[RegionResponse])
async def find_regions_containing_point(
    latitude: float = Query(..., ge=-90, le=90, description="Latitude"),
    longitude: float = Query(..., ge=-180, le=180, description="Longitude"),
    service: RegionService = Depends(get_region_service),
) -> list[RegionResponse]:
    """Find regions whose point or boundary contains the given point."""
    regions = await service.find_containing_point(latitude, longitude)
    return [RegionResponse.from_domain(region) for region in regions]


@router.get("/within/distance", response_model=list[RegionResponse])
async def find_regions_within_distance(
    latitude: float = Query(..., ge=-90, le=90, description="Latitude"),
    longitude: float = Query(..., ge=-180, le=180, description="Longitude"),
    max_distance: float = Query(
        ..., alias="maxDistance", description="Maximum distance in meters"
    ),
    user_id: Optional[str] = Query(
        None, alias="userId", description="Only regions owned by this user"
    ),
    service: RegionService = Depends(get_region_service),
) -> list[RegionResponse]:
    """Find regions within a distance of a point, nearest first."""
    regions = await service.find_within_distance(
        latitude, longitude, max_distance, user_id=user_id
    )
    return [RegionResponse.from_domain(region) for region in regions]


@router.post("", response_model=RegionResponse, status_code=status.HTTP_201_CREATED)
async def create_region(
    payload: RegionCreate,
    service: RegionService = Depends(get_region_service),
) -> RegionResponse:
    """Create a region and add it to its owner's region list."""
    region = await service.create(
        name=payload.name,
        coordinates=payload.coordinates,
        user_id=payload.user_id,
        boundary=payload.boundary,
        region_id=payload.id,
    )
    return RegionResponse.from_domain(region)


@router.get("", response_model=list[RegionResponse])
async def list_regions(
    page: Optional[int] = Query(None, ge=1, description="Page number"),
    per_page: Optional[int] = Query(
        None, ge=1, le=100, description="Items per page; all regions if omitted"
    ),
    service: RegionService = Depends(get_region_service),
) -> list[RegionResponse]:
    """List regions in creation order."""
    skip, limit = calculate_pagination_window(page, per_page)
    regions = await service.list(skip=skip, limit=limit)
    return [RegionResponse.from_domain(region) for region in regions]


@router.get("/{region_id}", response_model=RegionResponse)
async def get_region(
    region_id: str,
    service: RegionService = Depends(get_region_service),
) -> RegionResponse:
    """Get a region by ID."""
    region = await service.get(region_id)
    if region is None:
        raise HTTPException(status_code=404, detail="Region not found")
    return RegionResponse.from_domain(region)


@router.put("/{region_id}", response_model=RegionResponse)
async def update_region(
    region_id: str,
    payload: RegionUpdate,
    service: RegionService = Depends(get_region_service),
) -> RegionResponse:
    """
    Update a region.

    Changing the owner moves the region between the owners' region lists.
    Sending ``"boundary": null`` removes the boundary.
    """
    region = await service.update(
        region_id,
        name=payload.name,
        coordinates=payload.coordinates,
        user_id=payload.user_id,
        boundary=payload.boundary,
        clear_boundary=(
            "boundary" in payload.model_fields_set and payload.boundary is None
        ),
    )
    return RegionResponse.from_domain(region)


@router.delete("/{region_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_region(
    region_id: str,
    service: RegionService = Depends(get_region_service),
) -> Response:
    """Delete a region and remove it from its owner's region list."""
    if not await service.delete(region_id):
        raise HTTPException(status_code=404, detail="Region not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
