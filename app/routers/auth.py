from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session as DbSession

from app.config import Settings, get_settings
from app.database import get_db
from app.schemas.auth import LoginIn, RegisterIn, SetupIn
from app.services import accounts
from app.services.authz import AuthContext, require_access_token, require_refresh_token
from app.services.mailer import Mailer, get_mailer
from app.services.sessions import set_auth_cookies

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterIn,
    db: DbSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    """Create an account and email a verification link."""
    accounts.register(db, email=payload.email, password=payload.password, mailer=mailer, settings=settings)
    return {}


@router.get("/verify/{token}", status_code=status.HTTP_202_ACCEPTED)
def verify(
    token: str,
    resp: Response,
    db: DbSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    pair = accounts.verify_email(db, token=token, settings=settings)
    set_auth_cookies(resp, pair)
    return {}


@router.post("/login", status_code=status.HTTP_202_ACCEPTED)
def login(
    payload: LoginIn,
    resp: Response,
    db: DbSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    pair = accounts.login(db, email=payload.email, password=payload.password, settings=settings)
    set_auth_cookies(resp, pair)
    return {}


@router.post("/setup", status_code=status.HTTP_202_ACCEPTED)
def setup(
    payload: SetupIn,
    auth: AuthContext = Depends(require_access_token),
    db: DbSession = Depends(get_db),
):
    accounts.setup(db, user_id=auth.user_id, name=payload.name, username=payload.username)
    return {}


@router.post("/refresh", status_code=status.HTTP_202_ACCEPTED)
def refresh(
    resp: Response,
    auth: AuthContext = Depends(require_refresh_token),
    db: DbSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Rotate the refresh session: the presented token is spent, a new pair is set."""
    pair = accounts.refresh(db, user_id=auth.user_id, session_id=auth.session_id, settings=settings)
    set_auth_cookies(resp, pair)
    return {}
