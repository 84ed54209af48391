"""
API v1 routes.

Defines REST endpoints for registration, email verification and sign-in.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import get_auth_service
from src.api.models import (
    ErrorResponse,
    MessageResponse,
    ResendVerificationRequest,
    SaltResponse,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    VerifyEmailResponse,
)
from src.domain.accounts import AuthService
from src.domain.exceptions import (
    EmailAlreadyRegistered,
    NotificationFailed,
    SchemaViolation,
    VerificationFailed,
)
from src.domain.ports import AuthResult

router = APIRouter(tags=["v1"])


@router.post(
    "/sign-up",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"description": "Validation error (including a missing salt)"},
        502: {"model": ErrorResponse, "description": "Verification email could not be sent"},
    },
    summary="Register a new account",
    description="Submit email, name, a client-derived key and its salt. "
    "The account stays unverified until the emailed token is presented.",
)
def sign_up(
    request_data: SignUpRequest,
    service: AuthService = Depends(get_auth_service),
) -> SignUpResponse:
    """
    Register a new account and send a verification email.

    - **email**: Valid email address to register
    - **name**: Display name
    - **derived_key**: Base64 key derived client-side from email:password
    - **salt**: Base64 salt used for the derivation (required)
    """
    try:
        email = service.register(
            request_data.email,
            request_data.name,
            request_data.derived_key,
            request_data.salt,
        )
    except SchemaViolation as e:
        raise HTTPException(
            status_code=422,
            detail=str(e),
        ) from None
    except EmailAlreadyRegistered:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Registration failed",
        ) from None
    except NotificationFailed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Verification email could not be sent",
        ) from None

    return SignUpResponse(
        message="Account created. Check your email for a verification link.",
        email=email,
    )


@router.get(
    "/verify-email",
    response_model=VerifyEmailResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired token"},
    },
    summary="Verify email address",
    description="Consume the verification token sent by email. "
    "A token can be used once.",
)
def verify_email(
    token: str = Query(..., min_length=1, description="Verification token from the email"),
    service: AuthService = Depends(get_auth_service),
) -> VerifyEmailResponse:
    """
    Verify an account with the emailed token.

    Unknown, consumed and expired tokens all produce the same response.
    """
    try:
        email = service.verify_email(token)
    except VerificationFailed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired token",
        ) from None

    return VerifyEmailResponse(message="Email verified", email=email)


@router.get(
    "/salt",
    response_model=SaltResponse,
    summary="Get derivation salt",
    description="Return the salt needed to re-derive the key for an email. "
    "Unknown emails receive a stable decoy salt.",
)
def get_salt(
    email: str = Query(..., min_length=3, max_length=320),
    service: AuthService = Depends(get_auth_service),
) -> SaltResponse:
    return SaltResponse(salt=service.salt_for(email))


@router.post(
    "/sign-in",
    response_model=SignInResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Email not verified"},
    },
    summary="Sign in with a derived key",
)
def sign_in(
    request_data: SignInRequest,
    service: AuthService = Depends(get_auth_service),
) -> SignInResponse:
    result = service.authenticate(request_data.email, request_data.derived_key)

    if result == AuthResult.SUCCESS:
        return SignInResponse(message="Signed in", email=request_data.email.strip().lower())

    if result == AuthResult.NOT_VERIFIED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email not verified",
        )

    # Unknown email and wrong key are indistinguishable
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials",
    )


@router.post(
    "/verification-email",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        502: {"model": ErrorResponse, "description": "Verification email could not be sent"},
    },
    summary="Re-send the verification email",
)
def resend_verification_email(
    request_data: ResendVerificationRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Always acknowledges, whether or not the email has an unverified account."""
    try:
        service.resend_verification(request_data.email)
    except NotificationFailed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Verification email could not be sent",
        ) from None

    return MessageResponse(message="If the account exists, a verification email was sent")
