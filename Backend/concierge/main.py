import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.db import AsyncSessionLocal, Base, dispose_engine, engine
from .core.responses import ErrorCodes, error_response
from .routes_whatsapp import router as whatsapp_router
from .seed import seed_initial_data


settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Salon Concierge WhatsApp Backend")
app.include_router(whatsapp_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(ErrorCodes.INTERNAL_ERROR, "Internal server error"),
    )


@app.on_event("startup")
async def on_startup():
    if not settings.auto_create_schema:
        return
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as session:
        tenant = await seed_initial_data(session)
    logger.info(f"Schema ready; demo tenant {tenant.name!r} ({tenant.id})")


@app.get("/health")
async def healthcheck():
    return {"ok": True}


@app.on_event("shutdown")
async def on_shutdown():
    await dispose_engine()
