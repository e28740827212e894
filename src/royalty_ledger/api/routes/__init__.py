"""API routes."""

from royalty_ledger.api.routes.batches import router as batches_router
from royalty_ledger.api.routes.health import router as health_router
from royalty_ledger.api.routes.ledger import router as ledger_router

__all__ = ["batches_router", "health_router", "ledger_router"]
