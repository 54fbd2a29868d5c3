import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from strawberry.fastapi import GraphQLRouter

from app.core.config import settings
from app.core.database import Database
from app.core.logging_config import setup_logging
from app.graphql.context import get_context
from app.graphql.schema import schema
from app.middleware.logging import LoggingMiddleware
from app.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    db = Database(settings.DATABASE_URL, echo=settings.DEBUG)
    await db.init()
    if settings.AUTO_CREATE_TABLES:
        await db.create_all()
    app.state.db = db
    logger.info(f"Transportation Management API started ({settings.ENVIRONMENT})")
    try:
        yield
    finally:
        await db.teardown()
        logger.info("Transportation Management API stopped")


# Create FastAPI app
app_config = {
    "title": "Transportation Management API",
    "description": "GraphQL API for freight shipments, tracking events and shipment analytics",
    "version": "1.0.0",
    "lifespan": lifespan,
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
)
app.add_middleware(LoggingMiddleware)

# GraphQL endpoint; GET serves the IDE when one is configured
graphql_router = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide=settings.GRAPHQL_IDE,
)
app.include_router(graphql_router, prefix="/graphql")


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "timestamp": utcnow().isoformat(),
    }


def run_http(host: str = "0.0.0.0", port: int = 4000):
    """Run the HTTP server"""
    import uvicorn

    uvicorn.run("main:app", host=host, port=port, reload=settings.DEBUG)


if __name__ == "__main__":
    run_http()
