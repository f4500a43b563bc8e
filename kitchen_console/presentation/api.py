from datetime import datetime
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kitchen_console.presentation.schemas import (
    AlertResponse, DayGroupResponse, ErrorResponse, HistoryResponse,
    LoginRequest, LoginResponse, OrderResponse, RejectOrderRequest, StaffResponse
)
from kitchen_console.application import projections
from kitchen_console.application.authenticate import AuthenticateStaffUseCase
from kitchen_console.application.kitchen_sessions import KitchenSessions
from kitchen_console.application.session import KitchenSession
from kitchen_console.domain.exceptions import (
    InvalidCredentialsError, InvalidStateError, PersistenceFailureError
)
from kitchen_console.domain.models import OrderStatus
from kitchen_console.infrastructure.unit_of_work import UnitOfWork
from kitchen_console.database import get_session_factory

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


def _not_logged_in() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not logged in",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_kitchen_sessions(request: Request) -> KitchenSessions:
    return request.app.state.kitchens


def get_kitchen_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    kitchens: KitchenSessions = Depends(get_kitchen_sessions)
) -> KitchenSession:
    """The session opened by the caller's login"""
    kitchen = kitchens.get(credentials.credentials) if credentials else None
    if kitchen is None:
        raise _not_logged_in()
    return kitchen


def get_authenticate_use_case():
    return AuthenticateStaffUseCase(UnitOfWork(get_session_factory()))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}}
)
async def login(
    request: LoginRequest,
    use_case: AuthenticateStaffUseCase = Depends(get_authenticate_use_case),
    kitchens: KitchenSessions = Depends(get_kitchen_sessions)
):
    """Check staff credentials and open a kitchen session for them"""
    try:
        staff = await use_case(request.username, request.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    token = await kitchens.open(staff)
    return LoginResponse(
        access_token=token,
        staff=StaffResponse(id=staff.id, username=staff.username, display_name=staff.display_name)
    )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={401: {"model": ErrorResponse}}
)
async def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    kitchens: KitchenSessions = Depends(get_kitchen_sessions)
):
    """Close the caller's kitchen session and its change feed"""
    if credentials is None or not await kitchens.close(credentials.credentials):
        raise _not_logged_in()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/orders", response_model=List[OrderResponse])
async def list_orders(kitchen: KitchenSession = Depends(get_kitchen_session)):
    """Every order in the session, newest first"""
    return [OrderResponse.from_domain(o) for o in kitchen.snapshot()]


@router.get("/orders/today", response_model=List[OrderResponse])
async def today_orders(
    now: Optional[datetime] = None,
    kitchen: KitchenSession = Depends(get_kitchen_session)
):
    """Pending orders for today"""
    return [OrderResponse.from_domain(o) for o in kitchen.today_pending(now)]


@router.get("/orders/history/{history}", response_model=HistoryResponse)
async def order_history(
    history: Literal["paid", "rejected"],
    kitchen: KitchenSession = Depends(get_kitchen_session)
):
    """Paid or rejected orders grouped by day, most recent day first"""
    if history == "paid":
        groups = kitchen.paid_history()
    else:
        groups = kitchen.rejected_history()
    return HistoryResponse(
        status=OrderStatus(history),
        total=projections.history_total(groups),
        days=[DayGroupResponse.from_group(g) for g in groups]
    )


@router.post(
    "/orders/refresh",
    response_model=List[OrderResponse],
    responses={503: {"model": ErrorResponse}}
)
async def refresh_orders(kitchen: KitchenSession = Depends(get_kitchen_session)):
    try:
        return [OrderResponse.from_domain(o) for o in await kitchen.refresh()]
    except PersistenceFailureError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


async def _transition(kitchen: KitchenSession, order_id: str, target: OrderStatus, reason: Optional[str] = None):
    try:
        order = await kitchen.transition(order_id, target, reason)
        return OrderResponse.from_domain(order)
    except InvalidStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceFailureError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.post(
    "/orders/{order_id}/accept",
    response_model=OrderResponse,
    responses={409: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}
)
async def accept_order(order_id: str, kitchen: KitchenSession = Depends(get_kitchen_session)):
    """Mark a pending order as paid and notify the customer"""
    return await _transition(kitchen, order_id, OrderStatus.PAID)


@router.post(
    "/orders/{order_id}/reject",
    response_model=OrderResponse,
    responses={409: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}
)
async def reject_order(
    order_id: str,
    request: Optional[RejectOrderRequest] = None,
    kitchen: KitchenSession = Depends(get_kitchen_session)
):
    """Reject a pending order, optionally with a reason"""
    reason = request.reason if request else None
    return await _transition(kitchen, order_id, OrderStatus.REJECTED, reason)


@router.get("/alerts/current", response_model=Optional[AlertResponse])
async def current_alert(kitchen: KitchenSession = Depends(get_kitchen_session)):
    alert = kitchen.current_alert
    if alert is None:
        return None
    return AlertResponse(order=OrderResponse.from_domain(alert.order), raised_at=alert.raised_at)


@router.delete("/alerts/current", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_alert(kitchen: KitchenSession = Depends(get_kitchen_session)):
    kitchen.alerts.dismiss()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
