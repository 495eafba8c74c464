from fastapi import APIRouter

from cloudvault.api.api_v1.endpoints import files, folders, objects, search, shares, users

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(search.router, prefix="/files/search", tags=["search"])
api_router.include_router(files.router, prefix="/files", tags=["files"])
api_router.include_router(folders.router, prefix="/folders", tags=["folders"])
api_router.include_router(shares.router, prefix="/shares", tags=["shares"])
api_router.include_router(objects.router, prefix="/objects", tags=["objects"])
