from typing import Any

from fastapi import APIRouter, Body, Request

from gostwear.services.order_service import OrderService

router = APIRouter(prefix="/api", tags=["orders"])


@router.post("/order")
def place_order(request: Request, payload: Any = Body(None)):
    svc: OrderService = request.app.state.order_service
    svc.receive(payload)
    return {"message": "Order received successfully"}
