"""
FastAPI app assembly: logging and router wiring.
"""
import logging
import os

from fastapi import FastAPI

from devsync.api.collections import router as collections_router
from devsync.api.invitations import router as invitations_router
from devsync.api.orgs import router as orgs_router
from devsync.api.snippets import router as snippets_router
from devsync.api.tags import router as tags_router
from devsync.api.users import router as users_router

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="DevSync Access Service",
    description="Organizations, memberships, invitations and scoped snippets, collections and tags.",
    version="0.1.0",
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

app.include_router(users_router)
app.include_router(orgs_router)
app.include_router(invitations_router)
app.include_router(snippets_router)
app.include_router(collections_router)
app.include_router(tags_router)


@app.get("/health")
def health():
    return {"status": "ok"}
