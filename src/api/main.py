import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.models import StatusResponse
from src.api.routes.diagnostics import router as diagnostics_router
from src.api.routes.voice import router as voice_router
from src.briefing.caller import run_morning_briefing
from src.briefing.cron import MorningCallScheduler
from src.config import settings
from src.dialog.models import Route

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    scheduler: MorningCallScheduler | None = None
    if settings.scheduler_enabled:
        scheduler = MorningCallScheduler(
            run_morning_briefing,
            settings.morning_call_time,
            settings.morning_call_timezone,
        )
        scheduler.start()
        logger.info(
            "Morning call scheduled for %s %s",
            settings.morning_call_time,
            settings.morning_call_timezone,
        )
    logger.info("Inbound voice: %s%s", settings.base_url, Route.INBOUND.value)
    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()


app = FastAPI(
    title="Task Caller API",
    description="Voice-driven task manager: morning briefing calls and add-by-phone",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(voice_router)
app.include_router(diagnostics_router)


@app.get("/", response_model=StatusResponse)
async def status() -> StatusResponse:
    return StatusResponse(
        status="running",
        app="Task Caller",
        endpoints={
            "morningBriefing": Route.MORNING_BRIEFING.value,
            "inbound": Route.INBOUND.value,
            "inboundRecord": Route.INBOUND_RECORD.value,
            "testCall": "POST /test/morning-call",
            "testTasks": "GET /test/tasks",
            "testAddTask": "POST /test/add-task",
        },
    )


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
