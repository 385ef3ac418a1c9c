"""API routes."""

from fastapi import APIRouter

from blogcache.routes import articles, home

api_router = APIRouter()

# Home (top + latest rankings)
api_router.include_router(home.router, prefix="/v1/home", tags=["home"])

# Articles (list, show, create, like, delete)
api_router.include_router(articles.router, prefix="/v1/articles", tags=["articles"])
