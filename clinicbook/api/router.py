from fastapi import APIRouter, Request

from .v1.appointments import router as appointments_router
from .v1.medical import router as medical_router
from .v1.patients import router as patients_router
from .v1.users import router as users_router

api_router = APIRouter()
api_router.include_router(users_router)
api_router.include_router(medical_router)
api_router.include_router(appointments_router)
api_router.include_router(patients_router)


@api_router.get("/info", tags=["Info"])
async def api_info(request: Request):
    settings = request.app.state.settings
    prefix = settings.API_PREFIX
    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "endpoints": {
            name: f"{prefix}/{name}"
            for name in ("users", "medical", "appointments", "patients")
        } | {"docs": "/docs", "openapi": f"{prefix}/openapi.json"}
    }
