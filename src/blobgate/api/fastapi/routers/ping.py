from fastapi import APIRouter

ROUTER_TAG = "Health"
INCLUDE_ROUTER_IN_SCHEMA = False

router = APIRouter()


@router.get("/ping")
async def ping() -> dict:
    return {"status": "ok"}
