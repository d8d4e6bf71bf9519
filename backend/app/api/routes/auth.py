from fastapi import APIRouter, Depends

from app.api.deps import get_auth_service
from app.schemas.auth import (
    ForgotPasswordEmailIn,
    ForgotPasswordIn,
    LoginIn,
    MessageOut,
    OTPRequestOut,
    RequestEmailVerificationIn,
    ResendVerificationIn,
    ResetPasswordIn,
    ResetPasswordOtpIn,
    SignupIn,
    SignupOut,
    TokenOut,
    VerifyEmailIn,
    VerifyPhoneIn,
)
from app.services.auth import AuthService

router = APIRouter()


@router.post("/signup", response_model=SignupOut, status_code=201)
def signup(payload: SignupIn, auth: AuthService = Depends(get_auth_service)):
    return auth.signup(payload)


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, auth: AuthService = Depends(get_auth_service)):
    return auth.login(payload.login, payload.password)


@router.post("/verify-phone", response_model=MessageOut)
def verify_phone(payload: VerifyPhoneIn, auth: AuthService = Depends(get_auth_service)):
    auth.verify_phone(payload.phone, payload.otp)
    return MessageOut(message="Phone number verified successfully")


@router.post("/resend-verification", response_model=OTPRequestOut)
def resend_verification(payload: ResendVerificationIn, auth: AuthService = Depends(get_auth_service)):
    return auth.resend_verification(payload.phone)


@router.post("/forgot-password", response_model=OTPRequestOut)
def forgot_password(payload: ForgotPasswordIn, auth: AuthService = Depends(get_auth_service)):
    return auth.request_password_reset_otp(payload.phone)


@router.post("/reset-password-otp", response_model=MessageOut)
def reset_password_otp(payload: ResetPasswordOtpIn, auth: AuthService = Depends(get_auth_service)):
    auth.reset_password_with_otp(payload.phone, payload.otp, payload.new_password)
    return MessageOut(message="Password reset successfully")


@router.post("/forgot-password-email", response_model=MessageOut)
def forgot_password_email(payload: ForgotPasswordEmailIn, auth: AuthService = Depends(get_auth_service)):
    auth.request_password_reset_token(payload.email)
    # Same answer whether or not the address is registered.
    return MessageOut(message="If an account exists for this email, a reset link has been sent")


@router.post("/reset-password", response_model=MessageOut)
def reset_password(payload: ResetPasswordIn, auth: AuthService = Depends(get_auth_service)):
    auth.reset_password_with_token(payload.token, payload.new_password)
    return MessageOut(message="Password reset successfully")


@router.post("/request-email-verification", response_model=OTPRequestOut)
def request_email_verification(payload: RequestEmailVerificationIn, auth: AuthService = Depends(get_auth_service)):
    return auth.request_email_verification(payload.email)


@router.post("/verify-email", response_model=MessageOut)
def verify_email(payload: VerifyEmailIn, auth: AuthService = Depends(get_auth_service)):
    auth.verify_email(payload.email, payload.otp)
    return MessageOut(message="Email verified successfully")
