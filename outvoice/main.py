from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from . import __version__
from .config import settings
from .database import engine, Base
from .routers import pricing, proposals, pdf

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("outvoice")

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.APP_NAME,
    description="Proposal pricing, pagination and PDF export",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(pricing.router, prefix="/api")
app.include_router(proposals.router, prefix="/api")
app.include_router(pdf.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "outvoice"}


@app.on_event("startup")
def log_startup():
    logger.info("%s %s started (database: %s)", settings.APP_NAME, __version__, settings.DATABASE_URL.split("://")[0])
