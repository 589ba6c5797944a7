from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from storefront.db.database import get_db
from storefront.schemas.auth import SignUpRequest, SignInRequest, TokenResponse, UserResponse, MeResponse
from storefront.auth.dependencies import get_current_user
from storefront.services.auth_service import AuthService

router = APIRouter(
    prefix="/auth",
    tags=["Auth"]
)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency to get auth service"""
    return AuthService(db)


@router.post(
    "/sign-up",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a customer account",
    description="""
    Create an account with email and password. The email is confirmed immediately
    and a `customer` profile is created alongside the account.

    Sign in afterwards to obtain an access token.
    """,
    responses={
        201: {"description": "Account created"},
        409: {"description": "Email already registered"},
        422: {"description": "Invalid email or password too short"}
    }
)
async def sign_up(
    request: SignUpRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    try:
        return auth_service.sign_up(request.email, request.password, request.full_name)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )


@router.post(
    "/sign-in",
    response_model=TokenResponse,
    summary="Sign in with email and password",
    description="""
    Open a session and return a bearer access token.

    Include the token in the Authorization header of subsequent requests:
    ```
    Authorization: Bearer <access_token>
    ```
    """,
    responses={
        200: {"description": "Signed in"},
        401: {"description": "Invalid login credentials"}
    }
)
async def sign_in(
    request: SignInRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    try:
        return auth_service.sign_in(request.email, request.password)
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )


@router.post(
    "/sign-out",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign out",
    description="Revoke the session behind the current token. The token is rejected afterwards.",
    responses={
        204: {"description": "Session revoked"},
        401: {"description": "Authentication required"}
    }
)
async def sign_out(
    current_user: dict = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    try:
        auth_service.sign_out(current_user["session_id"])
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )
    return None


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current user and profile",
    description="""
    Return the signed-in user and their profile. A missing profile is created
    on the fly with the `customer` role.
    """,
    responses={
        200: {"description": "Current session"},
        401: {"description": "Authentication required"}
    }
)
async def me(
    current_user: dict = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    try:
        user = auth_service.get_user(current_user["user_id"])
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )
    return {"user": user, "profile": auth_service.get_profile(user)}
