from fastapi import APIRouter

from contract_repository.api.routes import contract_types, contracts, customers, health, reports

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(contracts.router)
api_router.include_router(contract_types.router)
api_router.include_router(customers.router)
api_router.include_router(reports.router)
