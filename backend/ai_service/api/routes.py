# Add routes here
from fastapi import APIRouter
from .v1 import blueprints

api_router = APIRouter(prefix="/api", tags=["ai-service"])

api_router.include_router(blueprints.router, prefix="/v1", tags=["blueprints"])

@api_router.get("/")
def read_root():
    return {"message": "Blueprint translator is running"}
