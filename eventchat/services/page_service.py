import logging
from typing import Any, Dict, List, Optional

from eventchat.models.user import UserRole
from eventchat.repositories.page_repository import PageRepository
from eventchat.schemas.page import PageCreate, PageOut, PageUpdate
from eventchat.schemas.user import Actor
from eventchat.utils.errors import NotFoundError, ValidationError
from eventchat.utils.slug import slugify, unique_slug


logger = logging.getLogger(__name__)


def _is_superuser(actor: Optional[Actor]) -> bool:
    return actor is not None and actor.role == UserRole.SUPERUSER


class PageService:
    """CMS pages. Everyone reads published pages, superusers manage them."""

    def __init__(self, page_repo: PageRepository) -> None:
        self._page_repo = page_repo

    async def list_pages(self, actor: Optional[Actor]) -> List[PageOut]:
        pages = await self._page_repo.list_pages(published_only=not _is_superuser(actor))
        return [PageOut.from_document(p) for p in pages]

    async def get_page_by_slug(self, actor: Optional[Actor], slug: str) -> PageOut:
        page = await self._page_repo.get_page_by_slug(slug)
        # unpublished pages do not exist for anyone but superusers
        if page is None or (not page.get("is_published") and not _is_superuser(actor)):
            raise NotFoundError("Page not found")
        return PageOut.from_document(page)

    async def create_page(self, actor: Actor, data: PageCreate) -> PageOut:
        base_slug = slugify(data.slug or data.title)
        if not base_slug:
            raise ValidationError("Slug must contain at least one letter or digit")
        slug = await self._unique_slug(base_slug)
        page = await self._page_repo.create_page(
            {
                "title": data.title,
                "slug": slug,
                "content": data.content,
                "is_published": data.is_published,
                "created_by": actor.id,
            }
        )
        logger.info("Page %s created with slug %s", page["_id"], slug)
        return PageOut.from_document(page)

    async def update_page(self, page_id: str, data: PageUpdate) -> PageOut:
        page = await self._page_repo.get_page(page_id)
        if page is None:
            raise NotFoundError("Page not found")

        changes: Dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        if "slug" in changes:
            base_slug = slugify(changes["slug"])
            if not base_slug:
                raise ValidationError("Slug must contain at least one letter or digit")
            changes["slug"] = await self._unique_slug(base_slug, exclude_id=page_id)

        updated = await self._page_repo.update_page(page_id, changes)
        if updated is None:
            raise NotFoundError("Page not found")
        return PageOut.from_document(updated)

    async def delete_page(self, page_id: str) -> None:
        if not await self._page_repo.soft_delete(page_id):
            raise NotFoundError("Page not found")
        logger.info("Page %s deleted", page_id)

    async def _unique_slug(self, base_slug: str, exclude_id: Optional[str] = None) -> str:
        """Return ``base_slug`` or the first free ``base_slug-N``, N counting from 1."""
        return await unique_slug(base_slug, lambda slug: self._page_repo.slug_exists(slug, exclude_id=exclude_id))
