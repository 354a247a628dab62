"""FastAPI application for plan generation and attraction enrichment."""

from fastapi import FastAPI

from tripplan.api.routes import attractions, health, metrics, plans

API_TITLE = "Trip Plan API"
API_VERSION = "0.1.0"


def create_app() -> FastAPI:
    application = FastAPI(title=API_TITLE, version=API_VERSION)

    for module, tag in (
        (health, "health"),
        (metrics, "metrics"),
        (plans, "plans"),
        (attractions, "attractions"),
    ):
        application.include_router(module.router, tags=[tag])

    @application.get("/")
    async def root() -> dict[str, str]:
        return {"message": API_TITLE, "version": API_VERSION}

    return application


app = create_app()
