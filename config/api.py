"""Django Ninja API configuration."""

from django.db import connection
from ninja import NinjaAPI

from features.allocation.endpoints import router as allocations_router
from features.auth.endpoints import router as auth_router
from features.crud.budgets.endpoints import router as budgets_router
from features.crud.shares.endpoints import router as shares_router
from features.crud.transactions.endpoints import router as transactions_router

# Create the main API instance
api = NinjaAPI(
    title="Envelope Budget API",
    version="1.0.0",
    description="Shared envelope budgets with itemized receipts, a balance wizard and monthly payroll",
)

# Register routers
api.add_router("/auth", auth_router, tags=["Authentication"])
api.add_router("/budgets", budgets_router, tags=["Budgets"])
api.add_router("/budgets", transactions_router, tags=["Transactions"])
api.add_router("/budgets", shares_router, tags=["Shares"])
api.add_router("/allocations", allocations_router, tags=["Allocations"])


@api.get("/health", tags=["Health"])
def health(request):
    """Liveness check that also touches the database."""
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
    return {"status": "ok"}
