from fastapi import APIRouter

from tunebridge.api.v1.routes import links, playlists, sync, transfers

router = APIRouter()
router.include_router(playlists.router, prefix="/playlists", tags=["playlists"])
router.include_router(transfers.router, prefix="/transfers", tags=["transfers"])
router.include_router(links.router, prefix="/links", tags=["links"])
router.include_router(sync.router, prefix="/sync", tags=["sync"])
