# -*- coding: utf-8 -*-
"""Main file to start FastAPI application."""
import logging.config
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app_comandas import config
from app_comandas.broker.order_broker_service import OrderEventPublisher
from app_comandas.broker.setup_rabbitmq import setup_rabbitmq
from app_comandas.errors import OrderError
from app_comandas.routers import order_router
from app_comandas.services.order_service import OrderService
from app_comandas.sql.database import Database

# Configure logging ################################################################################
logging.config.fileConfig(os.path.join(os.path.dirname(__file__), "logging.ini"))
logger = logging.getLogger(__name__)


# App Lifespan #####################################################################################
@asynccontextmanager
async def lifespan(__app: FastAPI):
    """Lifespan context manager."""
    database = Database(config.DATABASE_URL, echo=config.SQL_ECHO)
    try:
        logger.info("Starting up")

        try:
            logger.info("Creating database tables")
            await database.create_all()
        except Exception:
            logger.error("Could not create tables at startup", exc_info=True)

        publisher = OrderEventPublisher(config.RABBITMQ_URL, config.RABBITMQ_EXCHANGE)
        if publisher.enabled:
            try:
                logger.info("Declaring RabbitMQ exchange")
                await setup_rabbitmq(config.RABBITMQ_URL, config.RABBITMQ_EXCHANGE)
            except Exception as e:
                logger.error(f"❌ Error setting up RabbitMQ: {e}", exc_info=True)
        else:
            logger.info("RABBITMQ_URL not set; order events will not be published")

        __app.state.database = database
        __app.state.order_service = OrderService(
            database,
            publisher=publisher,
            history_limit=config.HISTORY_LIMIT,
        )
        yield
    finally:
        logger.info("Shutting down database")
        await database.dispose()


# OpenAPI Documentation ############################################################################
logger.info("Running app version %s", config.APP_VERSION)

app = FastAPI(
    redoc_url=None,  # disable redoc documentation.
    title="Comandas",
    version=config.APP_VERSION,
    servers=[{"url": "/", "description": "Development"}],
    license_info={
        "name": "MIT License",
        "url": "https://choosealicense.com/licenses/mit/",
    },
    lifespan=lifespan,
)


@app.exception_handler(OrderError)
async def order_error_handler(request: Request, exc: OrderError):
    """Typed order failures become JSON errors with a stable code."""
    logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.detail, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.code},
    )


app.include_router(order_router.router)

if __name__ == "__main__":
    """
    Application entry point. Starts the Uvicorn server, with SSL when certificates are configured.
    """
    ssl_options = {}
    if config.SERVICE_CERT_FILE and config.SERVICE_KEY_FILE:
        ssl_options = {
            "ssl_certfile": config.SERVICE_CERT_FILE,
            "ssl_keyfile": config.SERVICE_KEY_FILE,
        }

    uvicorn.run(
        "app_comandas.main:app",
        host="0.0.0.0",
        port=config.SERVICE_PORT,
        reload=True,
        **ssl_options,
    )
