from fastapi import APIRouter, Request

from tasktracker.core.utils import get_request_service, success_response

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("")
def overall_stats(request: Request):
    svc = get_request_service(request)
    return success_response(request, svc.get_overall_stats())
