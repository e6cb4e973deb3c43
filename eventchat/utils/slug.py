import re
from typing import Awaitable, Callable


MAX_SLUG_LENGTH = 200

_INVALID = re.compile(r"[^a-z0-9\s_-]")
_SEPARATORS = re.compile(r"[\s_]+")
_DASHES = re.compile(r"-+")


def slugify(text: str) -> str:
    """Lowercase ``text`` and reduce it to ``a-z``, digits and single hyphens."""
    slug = _INVALID.sub("", text.lower().strip())
    slug = _SEPARATORS.sub("-", slug)
    slug = _DASHES.sub("-", slug).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


async def unique_slug(base_slug: str, exists: Callable[[str], Awaitable[bool]]) -> str:
    """Return ``base_slug`` or the first ``base_slug-N`` (N from 1) that ``exists`` reports free."""
    slug = base_slug
    counter = 1
    while await exists(slug):
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug
