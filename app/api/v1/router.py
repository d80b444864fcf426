# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1 import admin, auth, courses, pre_enrollment

api_router = APIRouter()

api_router.include_router(auth.router,           prefix="/auth",           tags=["auth"])
api_router.include_router(courses.router,        prefix="/courses",        tags=["courses"])
api_router.include_router(pre_enrollment.router, prefix="/pre-enrollment", tags=["pre-enrollment"])
api_router.include_router(admin.router,          prefix="/admin",          tags=["admin"])
