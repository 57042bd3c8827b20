# designrelay/main.py
import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import Body, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .browser import SessionManager
from .config import Settings, get_settings
from .errors import ConfigurationError, RelayError
from .images import download_images, extract_image_urls
from .logger import configure_logging
from .models import GenerateAccepted, ImageDownloadResult, ImageListResult, WebsiteRequest
from .utils import build_prompt
from .worker import JobOrchestrator

log = logging.getLogger(__name__)


def _require_url(req: Optional[WebsiteRequest]) -> str:
    if req is None or not req.website_url:
        log.warning("API: Received request without 'websiteUrl'.")
        raise HTTPException(status_code=400, detail="Missing 'websiteUrl' in request body")
    return req.website_url


def create_app(settings: Settings = None, orchestrator: JobOrchestrator = None,
               sessions: SessionManager = None) -> FastAPI:
    settings = settings or get_settings()
    sessions = sessions or SessionManager(settings)
    orchestrator = orchestrator or JobOrchestrator(settings, sessions)

    app = FastAPI(title="designrelay")
    app.state.settings = settings
    app.state.sessions = sessions
    app.state.orchestrator = orchestrator

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    # Every POST route takes the same body; an unreadable one counts as missing
    @app.exception_handler(RequestValidationError)
    async def invalid_body(request, exc: RequestValidationError):
        log.warning("API: Rejected unreadable request body for %s", request.url.path)
        return JSONResponse(status_code=400, content={"error": "Missing 'websiteUrl' in request body"})

    @app.on_event("startup")
    async def startup_event():
        if not settings.webhook_url:
            log.warning("*****************************************************")
            log.warning("CLAY_WEBHOOK_URL is not set! /generate will reject jobs.")
            log.warning("*****************************************************")
        else:
            log.info("Configured to notify webhook at: %s", settings.webhook_url)
        log.info("Ready to accept POST requests at /generate (target %s)", settings.target_site_url)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cancel running jobs and close all browser sessions on shutdown."""
        await orchestrator.shutdown()

    @app.get("/", response_class=PlainTextResponse)
    async def health():
        now = datetime.now(ZoneInfo(settings.health_timezone)).strftime("%Y-%m-%d, %I:%M:%S %p")
        return f"API is running. Ready for /generate POST requests. Current time ({settings.health_timezone}): {now}"

    @app.post("/generate", status_code=202)
    async def generate(req: Optional[WebsiteRequest] = Body(None)):
        website_url = _require_url(req)
        try:
            job_id = orchestrator.submit(build_prompt(website_url), source_url=website_url)
        except ConfigurationError as e:
            log.error("API: %s", e)
            raise HTTPException(status_code=500, detail="Server configuration error: Webhook URL not set.")
        log.info("[%s] API: Received request for: %s", job_id, website_url)
        return GenerateAccepted(job_id=job_id).model_dump(by_alias=True)

    @app.get("/jobs")
    async def list_jobs():
        return {"jobs": [j.model_dump(by_alias=True) for j in orchestrator.list_jobs()]}

    @app.post("/extract-images")
    async def extract_images(req: Optional[WebsiteRequest] = Body(None)):
        website_url = _require_url(req)
        try:
            urls = await extract_image_urls(website_url, sessions, settings)
        except RelayError as e:
            log.error("API: Image extraction failed: %s", e)
            return JSONResponse(status_code=500, content={"status": "error", "websiteUrl": website_url, "error": str(e)})
        return ImageListResult(website_url=website_url, image_count=len(urls), images=urls).model_dump(by_alias=True)

    @app.post("/download-images")
    async def download(req: Optional[WebsiteRequest] = Body(None)):
        website_url = _require_url(req)
        try:
            urls, downloaded = await download_images(website_url, sessions, settings)
        except RelayError as e:
            log.error("API: Image download failed: %s", e)
            return JSONResponse(status_code=500, content={"status": "error", "websiteUrl": website_url, "error": str(e)})
        return ImageDownloadResult(
            website_url=website_url, image_count=len(urls), images=downloaded
        ).model_dump(by_alias=True)

    return app


def run():
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run("designrelay.main:app", host="0.0.0.0", port=settings.port)


app = create_app()
