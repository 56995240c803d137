from fastapi import APIRouter

from plantcare.api.v1.endpoints import admin, notifications, plants, tasks

api_router = APIRouter()

api_router.include_router(notifications.router)
api_router.include_router(tasks.router)
api_router.include_router(plants.router)
api_router.include_router(admin.router)
