from fastapi import APIRouter

from app.api.routes import health, auth, companies, reviews

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])  # GET /health
api_router.include_router(auth.router, prefix="/api/auth", tags=["auth"])  # POST /register, /login; GET /me
api_router.include_router(companies.router, prefix="/api/companies", tags=["companies"])
api_router.include_router(reviews.company_reviews_router, prefix="/api/companies/{company_id}/reviews", tags=["reviews"])
api_router.include_router(reviews.router, prefix="/api/reviews", tags=["reviews"])
