import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient
from contextlib import asynccontextmanager
from .models import DOCUMENT_MODELS
from .exceptions import CineCriticError, Unauthenticated
from .routers import user, reviews, comments, auth, movies, notifications
from .config import settings

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = AsyncIOMotorClient(settings.DATABASE_URL)
    db = client[settings.DATABASE_NAME]
    await init_beanie(database=db, document_models=DOCUMENT_MODELS)
    logger.info("Connected to MongoDB database %s", settings.DATABASE_NAME)
    yield
    client.close()

app = FastAPI(title="cinecritic", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.exception_handler(CineCriticError)
async def cinecritic_error_handler(request: Request, exc: CineCriticError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


app.include_router(user.router)
app.include_router(auth.router)
app.include_router(reviews.router)
app.include_router(comments.router)
app.include_router(movies.router)
app.include_router(notifications.router)
