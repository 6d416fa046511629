from fastapi import BackgroundTasks, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
import logging
from pathlib import Path

from .archive import ArchiveDispatcher, recent_archive_errors
from .config import settings
from .errors import NotFoundError, PortalError
from .guidance import list_emergency_contacts, list_tips
from .hospitals import list_hospitals, nearest_hospital
from .logging_setup import setup_logging
from .models import NewsIn, NewsItem
from .rotation import append_news, rotate_and_classify

app = FastAPI(title="Relief Portal", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)

STATIC_DIR = Path(settings.static_dir)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.on_event("startup")
def startup():
    setup_logging()
    logger.info("relief portal started news_path=%s archive_mode=%s", settings.news_path, settings.archive_mode)


@app.exception_handler(PortalError)
def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s detail=%s", request.method, request.url.path, exc, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/")
def index():
    return FileResponse(str(STATIC_DIR / "index.html"), media_type="text/html")


# --- Hospitals ---

@app.get("/api/hospitals")
def hospitals():
    return list_hospitals()


@app.get("/api/nearest-hospital")
def nearest(start_lat: str | None = None, start_lng: str | None = None):
    """Nearest hospital to the start point; the search itself runs in the datastore."""
    return nearest_hospital(start_lat, start_lng).model_dump()


# --- First-aid tips / contacts ---

@app.get("/api/fire-tips")
def fire_tips():
    return list_tips("fire")


@app.get("/api/accident-tips")
def accident_tips():
    return list_tips("accident")


@app.get("/api/flood-tips")
def flood_tips():
    return list_tips("flood")


@app.get("/api/collapse-tips")
def collapse_tips():
    return list_tips("collapse")


@app.get("/api/emergency-contacts")
def emergency_contacts():
    return list_emergency_contacts()


# --- News ---

@app.get("/api/disaster-news")
def disaster_news(background_tasks: BackgroundTasks):
    """Rotate the stored feed and return breaking + all kept items.

    Breaking items are handed to the archive dispatcher; its failures never
    reach this response.
    """
    dispatcher = ArchiveDispatcher()
    result = rotate_and_classify(
        archive=lambda records: dispatcher.dispatch(records, background_tasks),
    )
    return {"breaking_news": result.breaking, "all_news": result.all}


@app.post("/api/disaster-news", status_code=201)
def add_disaster_news(body: NewsIn):
    item = append_news(NewsItem(**body.model_dump()))
    return {"ok": True, "item": item}


@app.get("/api/archive/errors")
def archive_errors(limit: int = Query(50, ge=1, le=200)):
    if ArchiveDispatcher().mode != "queue":
        raise NotFoundError("archive queue is not enabled")
    return {"ok": True, "items": recent_archive_errors(limit=limit)}


def run():
    import uvicorn

    uvicorn.run("relief_portal.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
