import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from scanstock import database
from scanstock.config import settings
from scanstock.exceptions import ScanStockError
from scanstock.catalog.router import router as catalog_router
from scanstock.catalog.search.router import router as search_router
from scanstock.inventory.router import router as inventory_router


def configure_logging():
    if settings.LOG_FILE:
        logger.add(settings.LOG_FILE, rotation=settings.LOG_ROTATION, level=settings.LOG_LEVEL)


# Database startup / shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Application startup")
    database.init_engine(settings.DATABASE_URL)
    database.create_tables()
    yield
    database.dispose_engine()
    logger.info("Application shutdown")


# Create app
app = FastAPI(
    title="SCANSTOCK",
    description="Barcode-driven inventory: item catalog, add/remove stock, search.",
    version="1.0.0",
    lifespan=lifespan
)

# CORS only outside production (prod serves UI + API on the same origin)
if not settings.is_production:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# Errors
@app.exception_handler(ScanStockError)
async def scanstock_error_handler(request: Request, exc: ScanStockError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "SERVER_ERROR"})


# Routers (search BEFORE /items/{code})
app.include_router(search_router, prefix="/items", tags=["Items - Search"])
app.include_router(catalog_router, prefix="/items", tags=["Items"])
app.include_router(inventory_router, prefix="/inventory", tags=["Inventory"])


@app.get("/health")
def health_check():
    return {"ok": True}


# Static UI (AFTER routes), only if a build is present
frontend_dir = os.path.abspath(settings.FRONTEND_DIST) if settings.FRONTEND_DIST else ""

if frontend_dir and os.path.isdir(frontend_dir):
    assets_dir = os.path.join(frontend_dir, "assets")
    if os.path.isdir(assets_dir):
        app.mount("/assets", StaticFiles(directory=assets_dir), name="assets")
    logger.info(f"Serving UI from {frontend_dir}")

    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_spa(full_path: str):
        request_file = os.path.realpath(os.path.join(frontend_dir, full_path))

        # If the file exists in the build (favicon, manifest, ...), serve it
        inside = request_file.startswith(frontend_dir + os.sep)
        if inside and os.path.isfile(request_file):
            return FileResponse(request_file)

        # Otherwise serve index.html (SPA fallback)
        index_file = os.path.join(frontend_dir, "index.html")
        if os.path.isfile(index_file):
            return FileResponse(index_file)
        return JSONResponse(status_code=404, content={"error": "NOT_FOUND"})


def run():
    uvicorn.run("scanstock.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
