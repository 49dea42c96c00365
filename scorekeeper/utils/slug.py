"""Slug generation utilities for league and season URLs."""

import re
import unicodedata
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


def generate_slug(name: str) -> str:
    """Convert a display name to a URL-safe slug.

    Args:
        name: The display name to convert (e.g., "Foosball Friday")

    Returns:
        URL-safe slug (e.g., "foosball-friday")
    """
    if not name:
        return ""

    # Normalize unicode characters (é -> e, etc.)
    normalized = unicodedata.normalize("NFKD", name)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")

    lower = ascii_text.lower()

    # Replace spaces and underscores with hyphens
    hyphenated = re.sub(r"[\s_]+", "-", lower)

    # Remove any character that isn't alphanumeric or hyphen
    cleaned = re.sub(r"[^a-z0-9-]", "", hyphenated)

    # Collapse multiple hyphens into one
    collapsed = re.sub(r"-+", "-", cleaned)

    return collapsed.strip("-")


def _base_slug(name: str, fallback: str) -> str:
    """Return a normalized base slug or a safe fallback."""
    return generate_slug(name) or fallback


async def generate_unique_slug(
    name: str,
    db: AsyncSession,
    *,
    model: Any,
    scope: Optional[dict[str, Any]] = None,
    fallback: str = "item",
) -> str:
    """Generate a slug unique among ``model`` rows, appending a suffix if needed.

    Args:
        name: The display name to convert
        db: Database session for checking uniqueness
        model: Table class with a ``slug`` column
        scope: Extra column equality filters, e.g. ``{"league_id": 3}``
        fallback: Slug used when ``name`` has no usable characters

    Returns:
        Unique slug (e.g., "spring" or "spring-2")
    """
    base_slug = _base_slug(name, fallback)
    candidate = base_slug
    suffix = 1

    while True:
        query = select(model.id).where(model.slug == candidate)
        for column, value in (scope or {}).items():
            query = query.where(getattr(model, column) == value)

        result = await db.execute(query)
        if result.scalar_one_or_none() is None:
            return candidate

        # Slug taken, try next suffix
        suffix += 1
        candidate = f"{base_slug}-{suffix}"
