import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.src import schemas
from app.src.constants import API_TITLE, API_VERSION, CACHE_ENABLED, LOG_LEVEL
from app.src.db import engine, sessionMaker
from app.src.orders import OrderManager
from app.src.redis import NullCache, RedisCache
from app.src.urls import URL_HEALTH
from app.api.order import route_order

logging.basicConfig(level=LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cache = RedisCache.connect() if CACHE_ENABLED else NullCache()
    app.state.orderManager = OrderManager(sessionMaker, cache)
    yield
    cache.close()
    engine.dispose()


app = FastAPI(title=API_TITLE, version=API_VERSION, lifespan=lifespan)

origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(route_order)


# Health check endpoint
@app.get(URL_HEALTH, tags=["Health Check"], response_model=schemas.HealthStatus)
async def health_check():
    return {"status": "OK", "version": API_VERSION}
