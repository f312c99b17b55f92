#!/usr/bin/env python
"""FastAPI service for the photo gallery website.

Serves the index, gallery, bio and stats pages plus static assets, counts
page views in a HitCounter persisted to stats.csv, and appends a dated row
of counts to stats_log.csv on a schedule.
"""
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from apscheduler.schedulers.background import BackgroundScheduler
from pathlib import Path
from contextlib import asynccontextmanager
from typing import Optional
import argparse
import logging

from gallery_core.config import (
    ABOUT_BLURB,
    BIO_BLURB,
    GALLERY_BLURB,
    STATIC_DIRS,
    Settings,
    SpecialPage,
)
from gallery_core.exceptions import StatsPersistenceError
from gallery_core.gallery import gallery_exists, list_galleries, list_images, load_blurb
from gallery_core.hit_counter import HitCounter, sanitise_page_name
from gallery_core.stats_log import StatsLogAppender

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, start_scheduler: bool = True) -> FastAPI:
    """Build the site application around one HitCounter and one StatsLogAppender."""
    settings = settings or Settings.from_sources()

    hit_counter = HitCounter(settings.stats_path)
    stats_log = StatsLogAppender(settings.stats_log_path, hit_counter)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting gallery site with {settings!r}")
        await run_in_threadpool(hit_counter.restore)

        if start_scheduler:
            scheduler = BackgroundScheduler()
            scheduler.add_job(
                stats_log.tick,
                'interval',
                hours=settings.stats_log_interval_hours,
                id='stats_log_update',
                replace_existing=True
            )
            scheduler.start()
            logger.info(f"Scheduled stats log updates every {settings.stats_log_interval_hours} hour(s)")
            app.state.scheduler = scheduler

        yield

        logger.info("Shutting down gallery site...")
        if app.state.scheduler is not None:
            await run_in_threadpool(app.state.scheduler.shutdown)
            app.state.scheduler = None
        try:
            await run_in_threadpool(hit_counter.save)
        except StatsPersistenceError as e:
            logger.error(f"Could not save hit counts on shutdown: {e}")

    app = FastAPI(title="Photo Gallery", docs_url=None, redoc_url=None, openapi_url=None,
                  lifespan=lifespan)
    app.state.settings = settings
    app.state.hit_counter = hit_counter
    app.state.stats_log = stats_log
    app.state.scheduler = None

    templates = Jinja2Templates(directory=str(settings.templates_dir))

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        client = request.client.host if request.client else '-'
        logger.info(f"{request.method} {request.url.path} {client} "
                    f"{request.headers.get('referer', '')} {request.headers.get('user-agent', '')}")
        return await call_next(request)

    @app.get("/favicon.ico")
    def favicon():
        return Response(status_code=404)

    @app.get("/")
    def index(request: Request):
        app.state.hit_counter.increment(SpecialPage.INDEX.value)
        return templates.TemplateResponse(request, "index.html", {
            "galleries": list_galleries(settings.galleries_root),
            "about": load_blurb(settings.content_root / ABOUT_BLURB),
        })

    @app.get("/bio")
    def bio(request: Request):
        app.state.hit_counter.increment(SpecialPage.BIO.value)
        return templates.TemplateResponse(request, "bio.html", {
            "content": load_blurb(settings.content_root / BIO_BLURB),
        })

    @app.get("/gallery/{name:path}")
    def gallery(request: Request, name: str):
        name = sanitise_page_name(name)
        if not gallery_exists(settings.galleries_root, name):
            logger.info(f"Invalid gallery request ignored: {name!r}")
            return RedirectResponse("/", status_code=302)

        app.state.hit_counter.increment(name)
        return templates.TemplateResponse(request, "gallery.html", {
            "name": name,
            "galleries": list_galleries(settings.galleries_root),
            "images": list_images(settings.galleries_root, name),
            "blurb": load_blurb(settings.galleries_root / name / GALLERY_BLURB),
        })

    @app.get("/stats")
    def stats(request: Request):
        return templates.TemplateResponse(request, "stats.html", {
            "page_hit_counts": app.state.hit_counter.snapshot(),
        })

    @app.get("/stats-log")
    def stats_log_csv():
        content = app.state.stats_log.read_bytes()
        if content is None:
            return Response(status_code=404)
        return Response(content=content, media_type="text/csv")

    @app.get("/api/stats")
    def api_stats():
        """Current hit counts as JSON, highest first."""
        return {
            "pages": [entry._asdict() for entry in app.state.hit_counter.snapshot()]
        }

    @app.get("/api/health")
    def health_check():
        """Health check endpoint for monitoring."""
        scheduler = app.state.scheduler
        scheduler_running = bool(scheduler is not None and scheduler.running)
        galleries_ok = settings.galleries_root.is_dir()
        return JSONResponse({
            "status": "healthy" if (galleries_ok and scheduler_running) else "degraded",
            "galleries_root_exists": galleries_ok,
            "stats_exists": settings.stats_path.exists(),
            "stats_log_exists": settings.stats_log_path.exists(),
            "scheduler_running": scheduler_running,
        })

    mounts = [("galleries", settings.galleries_root)]
    mounts += [(static, settings.static_dir(static)) for static in STATIC_DIRS]
    for static, directory in mounts:
        if not directory.is_dir():
            logger.warning(f"Static directory {directory} missing, /{static}/ will not be served")
            continue
        app.mount(f"/{static}", StaticFiles(directory=str(directory)), name=static)

    return app


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the photo gallery site")
    parser.add_argument("--config", type=Path, default=None, help="YAML site config")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args(argv)

    import uvicorn

    settings = Settings.from_sources(args.config)
    host = args.host or settings.host
    port = args.port or settings.port

    logger.info(f"Starting server on {host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
