"""
Authentication API endpoints.
"""

from uuid import uuid4
from fastapi import APIRouter, HTTPException, status, Depends, Form

from ..dependencies import get_user_storage
from ..models import AccountDelete, PasswordChange, Token, User, UserCreate, UserInDB, UserUpdate
from ..storage.user_storage import UserStorage
from ..utils.auth import (
    authenticate_user,
    create_access_token,
    get_password_hash,
    get_current_user_id,
    verify_password,
)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _public(user) -> User:
    return User(**user.model_dump(exclude={"hashed_password"}))


async def _load_active_user(user_store: UserStorage, user_id: str) -> UserInDB:
    user = await user_store.get_user(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    user_store: UserStorage = Depends(get_user_storage),
):
    """
    Register a new user.

    Raises:
        HTTPException: 400 if the username already exists
    """
    if await user_store.get_user_by_username(user_data.username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already registered"
        )

    user = await user_store.create_user(
        user_id=str(uuid4()),
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        email=user_data.email,
    )
    return _public(user)


@router.post("/login", response_model=Token)
async def login(
    username: str = Form(...),
    password: str = Form(...),
    user_store: UserStorage = Depends(get_user_storage),
):
    """Exchange username and password for a bearer token."""
    user = await authenticate_user(user_store, username, password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": user.user_id, "username": user.username})
    return Token(access_token=access_token, token_type="bearer")


@router.get("/me", response_model=User)
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    user_store: UserStorage = Depends(get_user_storage),
):
    return _public(await _load_active_user(user_store, user_id))


@router.put("/profile", response_model=User)
async def update_profile(
    profile_update: UserUpdate,
    user_id: str = Depends(get_current_user_id),
    user_store: UserStorage = Depends(get_user_storage),
):
    """
    Update user profile information.

    Args:
        profile_update: Updated profile fields; omitted fields are kept

    Returns:
        Updated user object
    """
    await _load_active_user(user_store, user_id)
    user = await user_store.update_user(user_id, **profile_update.model_dump(exclude_none=True))
    return _public(user)


@router.put("/change-password")
async def change_password(
    body: PasswordChange,
    user_id: str = Depends(get_current_user_id),
    user_store: UserStorage = Depends(get_user_storage),
):
    """
    Replace the password after checking the current one.

    Raises:
        HTTPException: 400 if the current password is wrong
    """
    user = await _load_active_user(user_store, user_id)
    if not verify_password(body.current_password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    await user_store.change_password(user_id, get_password_hash(body.new_password))
    return {"success": True, "message": "Password changed successfully"}


@router.delete("/account")
async def delete_account(
    body: AccountDelete,
    user_id: str = Depends(get_current_user_id),
    user_store: UserStorage = Depends(get_user_storage),
):
    """
    Deactivate the account after confirming the password.

    Raises:
        HTTPException: 400 if the password is wrong
    """
    user = await _load_active_user(user_store, user_id)
    if not verify_password(body.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password is incorrect"
        )

    await user_store.delete_user(user_id)
    return {"success": True, "message": "Account deleted successfully"}
