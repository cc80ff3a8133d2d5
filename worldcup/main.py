import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from worldcup import __version__
from worldcup.database import init_db
from worldcup.routes import matches, snapshot, standings, teams, tournaments

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="World Cup 2026 Tracker API", version=__version__)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(matches.router, prefix="/api", tags=["matches"])
app.include_router(standings.router, prefix="/api", tags=["standings"])
app.include_router(snapshot.router, prefix="/api", tags=["snapshot"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("World Cup tracker %s started", __version__)


@app.get("/api/health")
def health_check():
    return {"app_name": "World Cup 2026 Tracker API", "version": __version__, "status": "healthy"}
