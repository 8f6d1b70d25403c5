"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pathfinder.api.v1 import router as v1_router
from pathfinder.core.config import settings

app = FastAPI(
    title="Pathfinder API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Credentialed CORS cannot use "*"; the refresh cookie needs explicit origins.
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"http://localhost(:\d+)?" if settings.APP_ENV == "dev" else None,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Pathfinder API"}


def run() -> None:
    """Serve the app with uvicorn (``pathfinder-api`` console script)."""
    uvicorn.run("pathfinder.main:app", host="127.0.0.1", port=8000, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
