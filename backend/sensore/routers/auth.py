from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sensore.config import Settings, get_settings
from sensore.database import get_db
from sensore.auth import SessionIssuer, SessionPrincipal, get_current_user, get_session_issuer
from sensore.schemas.auth import AuthRequest, AuthRedirect, CurrentUser, MeResponse
from sensore.services.account_service import AccountService

router = APIRouter()

DASHBOARD_PATHS = {
    "patient": "/dashboard/patient",
    "clinician": "/dashboard/clinician",
    "admin": "/dashboard/admin",
}
SIGNED_OUT_PATH = "/auth"


def redirect_for(account_type: str) -> str:
    return DASHBOARD_PATHS.get((account_type or "").lower(), "/")


def get_account_service(
    db: AsyncSession = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(db, issuer, bcrypt_rounds=settings.bcrypt_rounds)


@router.post("/signup", response_model=AuthRedirect)
async def sign_up(
    body: AuthRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
):
    """Create the account, then sign straight in."""
    await service.sign_up(body.email, body.password, body.account_type)
    await service.sign_in(body.email, body.password, body.account_type, response)
    return AuthRedirect(redirect_url=redirect_for(body.account_type))


@router.post("/signin", response_model=AuthRedirect)
async def sign_in(
    body: AuthRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
):
    await service.sign_in(body.email, body.password, body.account_type, response)
    return AuthRedirect(redirect_url=redirect_for(body.account_type))


@router.post("/signout", response_model=AuthRedirect)
async def sign_out(response: Response, service: AccountService = Depends(get_account_service)):
    """Always succeeds, signed in or not."""
    service.sign_out(response)
    return AuthRedirect(redirect_url=SIGNED_OUT_PATH)


@router.get("/me", response_model=MeResponse)
async def me(current_user: SessionPrincipal = Depends(get_current_user)):
    return MeResponse(
        authenticated=True,
        user=CurrentUser(
            id=current_user.user_id,
            username=current_user.username,
            email=current_user.email,
            account_type=current_user.account_type,
            first_name=current_user.first_name,
            last_name=current_user.last_name,
        ),
    )
