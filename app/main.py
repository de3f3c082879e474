from fastapi import FastAPI

from app.salecalc.api import api_router
from app.salecalc.core.config import settings
from app.salecalc.core.deps import build_document_numbers
from app.salecalc.core.errors import setup_exception_handlers
from app.salecalc.core.logging import configure_logging
from app.salecalc.middleware.observability import ObservabilityMiddleware
from app.salecalc.middleware.trace import TraceIdMiddleware


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME)
    app.state.document_numbers = build_document_numbers()
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
