from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Header
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer

from helpai.models.user import User
from helpai.schemas.user import UserCreate, UserRead, Token
from helpai.core.security import verify_password, get_password_hash, create_access_token, decode_access_token
from helpai.storage.base import ConversationStorage
from helpai.storage.factory import get_storage

router = APIRouter()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@router.post("/register", response_model=UserRead)
def register(user_in: UserCreate, storage: ConversationStorage = Depends(get_storage)):
    if storage.get_user_by_username(user_in.username):
        raise HTTPException(status_code=400, detail="Username already registered")
    if user_in.email and storage.get_user_by_email(user_in.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        username=user_in.username,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
    )
    return storage.create_user(user)

@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), storage: ConversationStorage = Depends(get_storage)):
    user = storage.get_user_by_username(form_data.username)
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Incorrect username or password")
    if not user.active:
        raise HTTPException(status_code=403, detail="User inactive")
    token = create_access_token({"sub": str(user.id)})
    return Token(access_token=token)

def get_current_user(token: Optional[str] = Depends(oauth2_scheme), storage: ConversationStorage = Depends(get_storage)):
    credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
    if not token:
        raise credentials_exception
    user_id = decode_access_token(token)
    if user_id is None:
        raise credentials_exception
    user = storage.get_user(user_id)
    if user is None:
        raise credentials_exception
    return user

def get_request_user(
    token: Optional[str] = Depends(oauth2_scheme),
    x_guest_mode: Optional[str] = Header(default=None),
    storage: ConversationStorage = Depends(get_storage),
) -> Optional[User]:
    """Usuario autenticado, o None si la petición viene en modo invitado."""
    if token:
        return get_current_user(token, storage)
    if x_guest_mode and x_guest_mode.strip().lower() == "true":
        return None
    raise HTTPException(status_code=401, detail="Not authenticated")

@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user
