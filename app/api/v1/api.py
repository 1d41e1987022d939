from fastapi import APIRouter

from app.api.v1.routes import accounts, auth, budgets, categories, goals, notification, reports, transactions, users

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth")
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(accounts.router)
api_router.include_router(categories.router)
api_router.include_router(budgets.router)
api_router.include_router(transactions.router)
api_router.include_router(goals.router)
api_router.include_router(reports.router)
api_router.include_router(notification.router, prefix="/notification", tags=["Notifications"])
