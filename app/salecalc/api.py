from fastapi import APIRouter

from app.salecalc.core.config import settings
from app.salecalc.routers.exchanges import router as exchanges_router
from app.salecalc.routers.health import router as health_router
from app.salecalc.routers.metrics import router as metrics_router
from app.salecalc.routers.payments import router as payments_router
from app.salecalc.routers.receipts import router as receipts_router
from app.salecalc.routers.returns import router as returns_router
from app.salecalc.routers.sales import router as sales_router
from app.salecalc.schemas.errors import ERROR_RESPONSES

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(sales_router, tags=["sales"], responses=ERROR_RESPONSES)
api_router.include_router(payments_router, tags=["payments"], responses=ERROR_RESPONSES)
api_router.include_router(returns_router, tags=["returns"], responses=ERROR_RESPONSES)
api_router.include_router(exchanges_router, tags=["exchanges"], responses=ERROR_RESPONSES)
api_router.include_router(receipts_router, tags=["receipts"], responses=ERROR_RESPONSES)
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
