from fastapi import APIRouter


router = APIRouter()


@router.get("/health")
async def health():
    """Health check endpoint"""
    from coach.services.session import session_registry

    return {
        "status": "healthy",
        "sessions": session_registry.session_count(),
        "active_streams": session_registry.active_streams,
    }
