from typing import Optional

from fastapi import APIRouter, Depends

from eventchat.database.connection import mongo_db_dependency
from eventchat.repositories.page_repository import PageRepository
from eventchat.schemas.page import PageCreate, PageUpdate
from eventchat.schemas.user import Actor
from eventchat.services.page_service import PageService
from eventchat.utils.dependencies import get_optional_user, require_superuser
from eventchat.utils.responses import success_response


router = APIRouter(prefix="/pages", tags=["pages"])


def get_page_service(db = Depends(mongo_db_dependency)) -> PageService:
    return PageService(PageRepository(db))


@router.get("")
async def list_pages(current_user: Optional[Actor] = Depends(get_optional_user), service: PageService = Depends(get_page_service)):
    return success_response(await service.list_pages(current_user))


@router.get("/{slug}")
async def get_page(slug: str, current_user: Optional[Actor] = Depends(get_optional_user), service: PageService = Depends(get_page_service)):
    return success_response(await service.get_page_by_slug(current_user, slug))


@router.post("")
async def create_page(body: PageCreate, current_user: Actor = Depends(require_superuser), service: PageService = Depends(get_page_service)):
    page = await service.create_page(current_user, body)
    return success_response(page, status_code=201)


@router.put("/{page_id}")
async def update_page(page_id: str, body: PageUpdate, current_user: Actor = Depends(require_superuser), service: PageService = Depends(get_page_service)):
    return success_response(await service.update_page(page_id, body))


@router.delete("/{page_id}")
async def delete_page(page_id: str, current_user: Actor = Depends(require_superuser), service: PageService = Depends(get_page_service)):
    await service.delete_page(page_id)
    return success_response({"message": "Page deleted successfully"})
