from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from medsearch.api.routes import channels, search
from medsearch.config import settings
from medsearch.services import video_search


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"medsearch API up: model={settings.perplexity_model} "
        f"link_probe={settings.link_probe_enabled} enrichment={settings.enrichment_enabled}"
    )
    if not settings.perplexity_api_key:
        logger.warning("PERPLEXITY_API_KEY is not set; searches will fail until it is configured")
    yield
    logger.info(f"medsearch API shutting down with {video_search.conversation_count()} conversation(s) in memory")


app = FastAPI(
    title="Medical Video Search",
    description="Evidence-based medical videos with scientific citations",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(search.router)
app.include_router(channels.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "medsearch"}
