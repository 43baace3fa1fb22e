"""
Authentication API Routes

Provides endpoints for:
- User registration and login (returns JWT token)
- Current user info and profile updates
- API key regeneration
"""
from fastapi import APIRouter, HTTPException, Depends
from sqlmodel import Session

from chatbridge.core.auth import create_access_token, get_current_user, get_user_by_username
from chatbridge.core.database import get_session
from chatbridge.models.user import User, UserLogin, UserProfileUpdate, UserRegister, UserResponse

router = APIRouter()


def _to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        api_key=user.api_key,
        full_name=user.full_name,
        avatar_url=user.avatar_url,
        created_at=user.created_at,
    )


@router.post("/register", status_code=201)
async def register(data: UserRegister, session: Session = Depends(get_session)):
    """
    Create a user account and return its first access token.
    """
    if get_user_by_username(session, data.username):
        raise HTTPException(status_code=400, detail="Username already taken")

    user = User.create(username=data.username, password=data.password, full_name=data.full_name)
    session.add(user)
    session.commit()
    session.refresh(user)

    return {
        "access_token": create_access_token(data={"sub": user.username}),
        "token_type": "bearer",
        "user": _to_response(user),
    }


@router.post("/login")
async def login(credentials: UserLogin, session: Session = Depends(get_session)):
    """
    Authenticate user and return JWT token.
    """
    user = get_user_by_username(session, credentials.username)
    if not user or not user.verify_password(credentials.password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password"
        )

    return {
        "access_token": create_access_token(data={"sub": user.username}),
        "token_type": "bearer",
        "user": _to_response(user),
    }


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return _to_response(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    updates: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Update profile fields. Only fields present in the body are changed.
    """
    user = session.get(User, current_user.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    session.add(user)
    session.commit()
    session.refresh(user)
    return _to_response(user)


@router.post("/regenerate-key")
async def regenerate_api_key(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Regenerate the user's API key.
    """
    user = session.get(User, current_user.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    new_key = user.regenerate_api_key()
    session.add(user)
    session.commit()

    return {
        "api_key": new_key,
        "message": "API key regenerated successfully"
    }
