from fastapi import APIRouter
from orstock.services.time_gate import get_next_allowed_time, is_within_allowed_time

router = APIRouter()


@router.get("")
async def get_time_gate():
    return {
        "allowed": is_within_allowed_time(),
        "nextAllowedTime": get_next_allowed_time(),
    }
