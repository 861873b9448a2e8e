"""Shared page/limit checks for the listing use cases."""

from __future__ import annotations

from grocer.domain.exceptions import FieldError, ValidationError

# Keeps (page - 1) * limit inside SQLite's 64-bit OFFSET.
MAX_PAGE = 1_000_000


def page_offset(page: int, limit: int, max_limit: int) -> int:
    """Validate ``page``/``limit`` and return the number of rows to skip."""
    errors: list[FieldError] = []
    if page < 1 or page > MAX_PAGE:
        errors.append(FieldError("page", f"Page must be between 1 and {MAX_PAGE}"))
    if limit < 1 or limit > max_limit:
        errors.append(FieldError("limit", f"Limit must be between 1 and {max_limit}"))
    if errors:
        raise ValidationError("Validation failed", errors)
    return (page - 1) * limit
