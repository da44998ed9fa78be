from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import services
from app.auth.dependencies import bearer_scheme, get_current_user
from app.auth.schemas import CurrentUser, SessionResponse, SignInRequest, SignUpRequest
from app.core.rate_limit import enforce_rate_limit
from app.core.schemas import DataResponse
from app.db.session import get_db

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    dependencies=[Depends(enforce_rate_limit)],
)


def _client_info(request: Request):
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


@router.post(
    "/sign-up",
    response_model=DataResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def sign_up(
    payload: SignUpRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    ip_address, user_agent = _client_info(request)
    return {"data": await services.sign_up(db, payload, ip_address, user_agent)}


@router.post("/sign-in", response_model=DataResponse[SessionResponse])
async def sign_in(
    payload: SignInRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    ip_address, user_agent = _client_info(request)
    return {"data": await services.sign_in(db, payload, ip_address, user_agent)}


@router.post("/sign-out")
async def sign_out(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await services.sign_out(db, credentials.credentials)
    return {"success": True}


@router.get("/session", response_model=DataResponse[CurrentUser])
async def get_session(current_user: CurrentUser = Depends(get_current_user)):
    return {"data": current_user}
