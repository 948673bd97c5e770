"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from glucose_advisor.api.admin import router as admin_router
from glucose_advisor.api.advisory import router as advisory_router
from glucose_advisor.api.analyses import router as analyses_router
from glucose_advisor.api.foods import router as foods_router
from glucose_advisor.api.glucose import router as glucose_router
from glucose_advisor.api.meals import router as meals_router
from glucose_advisor.api.profiles import router as profiles_router
from glucose_advisor.app_logging import configure_logging
from glucose_advisor.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="Glucose Advisor", lifespan=lifespan)
    app.state.container = container

    app.include_router(foods_router)
    app.include_router(analyses_router)
    app.include_router(glucose_router)
    app.include_router(meals_router)
    app.include_router(profiles_router)
    app.include_router(advisory_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
