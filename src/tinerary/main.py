import logging
from contextlib import asynccontextmanager

from elasticsearch import AsyncElasticsearch
from fastapi import Depends, FastAPI

from .config import get_elasticsearch_api_key, get_elasticsearch_url, get_log_level
from .routers import health, search
from .security import verify_api_key

logging.basicConfig(level=get_log_level())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    es = AsyncElasticsearch(get_elasticsearch_url(), api_key=get_elasticsearch_api_key())
    app.state.es = es
    logger.info("Elasticsearch client created for %s", get_elasticsearch_url())
    try:
        yield
    finally:
        await es.close()


app = FastAPI(
    title="Tinerary Search API",
    description="Search, suggestions and popular searches for Tinerary itineraries and travellers",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(search.router)


@app.get("/", dependencies=[Depends(verify_api_key)])
async def root():
    return {"message": "Tinerary Search API"}
