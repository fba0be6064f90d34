from fastapi import APIRouter

from lifeledger.api.v1.endpoints import recurring_transactions, categories

api_router = APIRouter()
api_router.include_router(recurring_transactions.router, prefix="/recurring-transactions", tags=["recurring-transactions"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
