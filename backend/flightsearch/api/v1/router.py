#To aggregate all routes for API1


from fastapi import APIRouter

from flightsearch.api.v1.routes.search import router as search_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(search_router, prefix="/search", tags=["search"])
