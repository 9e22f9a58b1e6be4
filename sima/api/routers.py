from fastapi import APIRouter

from sima.api.endpoints import audit, auth, personas, registros, system, usuarios

router = APIRouter()

router.include_router(auth.router)
router.include_router(personas.router)
router.include_router(registros.router)
router.include_router(usuarios.router)
router.include_router(audit.router)
router.include_router(system.router)
