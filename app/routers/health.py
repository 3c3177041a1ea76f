from fastapi import APIRouter

router = APIRouter(tags=["system"])

@router.get("/z")
def healthz():
    # Check si l'API est up
    return {"success": True, "status": "ok"}
