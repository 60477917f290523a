import sys
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from ddltorznab.core.config import settings
from ddltorznab.api.routes import router as api_router
from ddltorznab.services.resolver import build_link_resolver

logger.remove()
logger.add(sys.stderr, level=settings.LOG_LEVEL)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def startup_event():
    # Owns the host availability tracker for the life of the process
    app.state.resolver = build_link_resolver()
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"AllDebrid: {'Enabled' if app.state.resolver.debrid.is_configured else 'Disabled'}")
    cache_stats = await app.state.resolver.fallback.get_cache_stats()
    logger.info(f"DL-Protect cache: {str(cache_stats.entries) + ' entries' if cache_stats else 'unavailable'}")

@app.on_event("shutdown")
async def shutdown_event():
    resolver = getattr(app.state, "resolver", None)
    if resolver is not None:
        await resolver.aclose()
    logger.info("Server closed")

@app.get("/")
async def root():
    return {"message": f"{settings.PROJECT_NAME} is running"}

app.include_router(api_router)

if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
