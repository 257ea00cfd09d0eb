from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .routers import runs as runs_router


app = FastAPI(
    title="Report Viewer",
    version="0.1.0",
    description="Read-only API over runs recorded by the report listener.",
)

# =========================
# CORS
# =========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =========================
# Routers registration
# =========================
app.include_router(runs_router.router, prefix=settings.api_prefix)

# =========================
# Health endpoint
# =========================
@app.get("/health")
def health():
    return {"status": "ok"}
