import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from .builds import BUILD_STAGES, BuildRequestError, plan_build
from .dependencies import get_repository
from .orders import OrderRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/build", tags=["build"])


@router.post("")
def request_build(request: Dict[str, Any] = Body(...)):
    try:
        plan = plan_build(request)
    except BuildRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(f"Build {plan['app']['id']} planned for {request.get('name')}: {len(plan['buildSteps'])} steps")
    return {"success": True, **plan}


@router.get("")
def build_status(orderId: Optional[str] = None, repository: OrderRepository = Depends(get_repository)):
    if not orderId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order ID is required")

    order = repository.get(orderId)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    completed_stages = sum(
        1 for line in (order.build_logs or []) if line.startswith("✓ ") and line[2:] in BUILD_STAGES
    )
    return {
        "success": True,
        "buildStatus": {
            "orderId": order.id,
            "buildId": order.build_id,
            "status": order.status,
            "progress": order.progress or 0,
            "currentStep": order.current_build_step,
            "completedSteps": completed_stages,
            "totalSteps": len(BUILD_STAGES),
            "logs": list(order.build_logs or []),
            "error": order.build_error,
            "deliveryUrl": order.delivery_url,
        },
    }
