from fastapi import APIRouter

from leaveflow.api.leaves import leaves_router
from leaveflow.api.users import admin_router, auth_router, managers_router, users_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(leaves_router)
api_router.include_router(managers_router)
api_router.include_router(admin_router)
