from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session as DbSession

from app.database import get_db
from app.schemas.me import MeOut, UpdateNameIn, UpdateUsernameIn
from app.services import accounts
from app.services.authz import AuthContext, require_access_token
from app.services.storage import ObjectStorage, get_storage
from app.utils.constants import AVATAR_MAX_BYTES

router = APIRouter(prefix="/me", tags=["me"])


@router.get("", response_model=MeOut)
def get_me(auth: AuthContext = Depends(require_access_token), db: DbSession = Depends(get_db)):
    return accounts.get_profile(db, auth.user_id)


@router.patch("/username")
def update_username(
    payload: UpdateUsernameIn,
    auth: AuthContext = Depends(require_access_token),
    db: DbSession = Depends(get_db),
):
    accounts.update_username(db, user_id=auth.user_id, username=payload.username)
    return {"message": "Success"}


@router.patch("/name")
def update_name(
    payload: UpdateNameIn,
    auth: AuthContext = Depends(require_access_token),
    db: DbSession = Depends(get_db),
):
    accounts.update_name(db, user_id=auth.user_id, name=payload.name)
    return {"message": "Success"}


@router.patch("/avatar")
def update_avatar(
    file: UploadFile = File(...),
    auth: AuthContext = Depends(require_access_token),
    db: DbSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    # one byte past the limit is enough to detect an oversized upload
    content = file.file.read(AVATAR_MAX_BYTES + 1)
    accounts.check_avatar(len(content), file.content_type)

    url = accounts.update_avatar(
        db,
        user_id=auth.user_id,
        content=content,
        content_type=file.content_type,
        storage=storage,
    )
    return {"url": url}
