from fastapi import APIRouter

from app.api.routers import roles, auth, users, cars, rentals

api_router = APIRouter()

api_router.include_router(roles.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(cars.router)
api_router.include_router(rentals.router)
