"""
Consolidated routes module.

All API routers are exported from this module for centralized access.
Routes remain in their domain directories but are re-exported here.

Usage:
    from inmodash.routes import register_all_routes
    register_all_routes(app, settings.API_V1_PREFIX)
"""
from typing import List, Tuple
from fastapi import APIRouter

# Inventory
from inmodash.data.owners.routes import router as owner_router
from inmodash.data.properties.routes import building_router, apartment_router
from inmodash.data.tenants.routes import router as tenant_router
from inmodash.data.contracts.routes import router as contract_router
from inmodash.data.guarantors.routes import router as guarantor_router, contract_guarantor_router

# Financial engine
from inmodash.data.obligations.routes import router as obligation_router
from inmodash.data.recurring.routes import router as recurring_router
from inmodash.data.settlements.routes import router as settlement_router
from inmodash.accounting.routes import router as accounting_router

# Rent indices
from inmodash.indices.routes import router as indices_router

# Dashboard
from inmodash.dashboard.routes import router as dashboard_router


# Each tuple: (router, prefix, tags)
ROUTER_CONFIGS: List[Tuple[APIRouter, str, List[str]]] = [
    # Inventory
    (owner_router, "/owners", ["Owners"]),
    (building_router, "/buildings", ["Buildings"]),
    (apartment_router, "/apartments", ["Apartments"]),
    (tenant_router, "/tenants", ["Tenants"]),
    (contract_router, "/contracts", ["Contracts"]),
    (contract_guarantor_router, "/contracts", ["Contracts"]),
    (guarantor_router, "/guarantors", ["Guarantors"]),
    # Financial engine
    (obligation_router, "/obligations", ["Obligations"]),
    (recurring_router, "/recurring-obligations", ["Recurring Obligations"]),
    (settlement_router, "/settlements", ["Settlements"]),
    (accounting_router, "/accounting", ["Accounting"]),
    # Rent indices
    (indices_router, "/indices", ["Indices"]),
    # Dashboard
    (dashboard_router, "/dashboard", ["Dashboard"]),
]


def register_all_routes(app, api_prefix: str = "/api") -> None:
    """
    Register all routers with the FastAPI app.

    Args:
        app: FastAPI application instance
        api_prefix: API prefix (default: /api)
    """
    for router, prefix, tags in ROUTER_CONFIGS:
        full_prefix = f"{api_prefix}{prefix}" if prefix else api_prefix
        app.include_router(router, prefix=full_prefix, tags=tags)
