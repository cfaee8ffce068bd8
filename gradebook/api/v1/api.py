from fastapi import APIRouter
from gradebook.api.v1.endpoints import mark, result, sub_exam

api_router = APIRouter()
api_router.include_router(sub_exam.router)
api_router.include_router(mark.router)
api_router.include_router(result.router)
