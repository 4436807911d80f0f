"""
Main application entry point.
"""

import logging

from fastapi import FastAPI

from app.api.v1.book_endpoints import router as books_router
from app.api.v1.errors import register_error_handlers
from app.config import load_settings

logging.basicConfig(
    level=load_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="Book Catalog API",
    description="Catalog books with validated metadata and semantic embeddings.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Include API routers
app.include_router(books_router, prefix="/api/v1", tags=["books"])
register_error_handlers(app)


@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Book Catalog API",
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
