"""Utility functions for API endpoints."""

from typing import Optional


def calculate_pagination_window(
    page: Optional[int],
    per_page: Optional[int],
) -> tuple[int, Optional[int]]:
    """
    Translate optional page parameters into a skip/limit pair.

    Without ``per_page`` the whole collection is returned; ``page`` then
    has no effect.

    Args:
        page: Page number, starting at 1
        per_page: Items per page

    Returns:
        Tuple of (skip, limit), where limit is None for no limit
    """
    if per_page is None:
        return 0, None
    current_page = page or 1
    return (current_page - 1) * per_page, per_page
