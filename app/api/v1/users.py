"""Users API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.v1.dependencies import get_user_service
from app.api.v1.utils import calculate_pagination_window
from app.models.user import UserCreate, UserResponse, UserUpdate
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """
    Create a user from an address or from coordinates.

    Exactly one of the two must be given; the other is geocoded.
    """
    user = await service.create(payload)
    return UserResponse.from_domain(user)


@router.get("", response_model=list[UserResponse])
async def list_users(
    page: Optional[int] = Query(None, ge=1, description="Page number"),
    per_page: Optional[int] = Query(
        None, ge=1, le=100, description="Items per page; all users if omitted"
    ),
    service: UserService = Depends(get_user_service),
) -> list[UserResponse]:
    """List users in creation order."""
    skip, limit = calculate_pagination_window(page, per_page)
    users = await service.list(skip=skip, limit=limit)
    return [UserResponse.from_domain(user) for user in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Get a user by ID."""
    user = await service.get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.from_domain(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """
    Update a user.

    Sending an address or coordinates replaces the whole location.
    """
    user = await service.update(user_id, payload)
    return UserResponse.from_domain(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> Response:
    """Delete a user together with every region they own."""
    if not await service.delete(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
