import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from eventchat.config import get_settings
from eventchat.database.connection import close_mongo_connection, connect_to_mongo, get_database
from eventchat.repositories.event_repository import EventRepository
from eventchat.repositories.message_repository import MessageRepository
from eventchat.repositories.page_repository import PageRepository
from eventchat.repositories.room_repository import RoomRepository
from eventchat.repositories.user_repository import UserRepository
from eventchat.routers.events import router as events_router
from eventchat.routers.messages import router as messages_router
from eventchat.routers.pages import router as pages_router
from eventchat.routers.realtime import router as realtime_router
from eventchat.routers.rooms import router as rooms_router
from eventchat.utils.errors import AppError
from eventchat.utils.realtime_bus import close_bus, get_bus
from eventchat.utils.responses import error_response


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    await connect_to_mongo()
    db = get_database()
    repositories = (
        UserRepository(db),
        EventRepository(db),
        MessageRepository(db),
        PageRepository(db),
        RoomRepository(db),
    )
    for repo in repositories:
        await repo.ensure_indexes()
    await get_bus()
    try:
        yield
    finally:
        await close_bus()
        await close_mongo_connection()


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc.message, status_code=exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return error_response(f"{location}: {message}" if location else message, status_code=400)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Eventchat API", lifespan=lifespan)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(events_router, prefix=settings.api_prefix)
    app.include_router(messages_router, prefix=settings.api_prefix)
    app.include_router(pages_router, prefix=settings.api_prefix)
    app.include_router(rooms_router, prefix=settings.api_prefix)
    app.include_router(realtime_router)

    @app.get("/")
    async def root():
        return {"success": True, "data": {"service": "eventchat"}}

    return app


app = create_app()
