import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import ADMIN_CACHE_TTL_SECONDS, CORS_ORIGINS, JWT_SECRET, LOG_LEVEL
from app.db.db import init_db
from app.routers import admin, claims, discs, lost_discs, notifications, profile
from app.services.admin_check import AdminStatusCache

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not JWT_SECRET:
        raise RuntimeError("JWT_SECRET environment variable not set")

    init_db()
    yield


app = FastAPI(lifespan=lifespan)

app.state.admin_cache = AdminStatusCache(ttl_seconds=ADMIN_CACHE_TTL_SECONDS)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(profile.router, prefix="/profile", tags=["Profile"])
app.include_router(lost_discs.router, prefix="/lost-discs", tags=["Lost Discs"])
app.include_router(discs.router, prefix="/discs", tags=["Discs"])
app.include_router(claims.router, prefix="/claims", tags=["Claims"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])


@app.get("/")
def root():
    return {"status": "ok"}
