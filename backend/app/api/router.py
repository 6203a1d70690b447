"""
Main API router.
"""

from fastapi import APIRouter
from app.api import transactions, dashboard, reports

api_router = APIRouter()

api_router.include_router(transactions.router)
api_router.include_router(dashboard.router)
api_router.include_router(reports.router)
