from fastapi import APIRouter
from app.routers import manager_capability

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(manager_capability.router, tags=["Manager Capability"])
