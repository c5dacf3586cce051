import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from devhub.database import DB_NAME, create_client, get_database
from devhub.errors import (
    PostError,
    post_error_handler,
    request_validation_handler,
    unhandled_error_handler,
)
from devhub.routes import posts
from devhub.utils.log import EVENT_APP_START, EVENT_DB_CONNECTED, log_event, setup_logging

logger = logging.getLogger(__name__)

# Allow your frontend origin
origins = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:5173").split(",")


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = create_client()
    app.state.db = get_database(client)
    log_event(logger, "info", EVENT_DB_CONNECTED, db=DB_NAME)
    try:
        yield
    finally:
        await client.close()


def create_app(lifespan=lifespan) -> FastAPI:
    setup_logging()
    log_event(logger, "info", EVENT_APP_START)

    app = FastAPI(title="DevHub Posts", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PostError, post_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(posts.router)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
