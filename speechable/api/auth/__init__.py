import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field

from speechable.models.user import User
from speechable.services.auth import TokenIssuer, get_current_user, get_token_issuer
from speechable.services.notifier import Notifier, get_notifier
from speechable.services.password_reset import (
    request_password_reset,
    reset_password,
    verify_password_reset_pin,
)
from speechable.services.rate_limit import limit_route
from speechable.services.users import create_user, find_by_email
from speechable.utils.base.enums import AuthProvider
from speechable.utils.config import settings
from speechable.utils.errors import BadRequestError, DeliveryError, UnauthorizedError
from speechable.utils.security import generate_throwaway_password


logger = logging.getLogger(__name__)

router = APIRouter()


class CamelBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def token_response(user: User, issuer: TokenIssuer) -> dict:
    """Success envelope carrying a fresh bearer token and the user."""
    return {
        "status": "success",
        "token": issuer.issue(str(user.id)),
        "data": {"user": user.to_output()},
    }


class SignupBody(CamelBody):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    password_confirm: str | None = Field(default=None, alias="passwordConfirm")

@router.post("/signup", status_code=201)
def signup(
    body: SignupBody,
    issuer: TokenIssuer = Depends(get_token_issuer),
    notifier: Notifier = Depends(get_notifier),
) -> dict:
    user = create_user(body.name, body.email, body.password, body.password_confirm)
    # Welcome mail is best-effort; the account already exists
    try:
        notifier.send_welcome(user)
    except DeliveryError as e:
        logger.warning("Welcome email to user %s failed: %s", user.id, e)
    return token_response(user, issuer)


class LoginBody(BaseModel):
    email: str | None = None
    password: str | None = None

@router.post("/login")
def login(body: LoginBody, issuer: TokenIssuer = Depends(get_token_issuer)) -> dict:
    if not body.email or not body.password:
        raise BadRequestError("Please provide email and password!")
    user = find_by_email(body.email)
    # Same answer for unknown email and wrong password
    if not user or not user.check_password(body.password):
        raise UnauthorizedError("Incorrect email or password")
    return token_response(user, issuer)


class ExternalAuthBody(BaseModel):
    email: str | None = None
    name: str | None = None

@router.post("/auth")
def external_auth(
    body: ExternalAuthBody,
    response: Response,
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> dict:
    """Find-or-create an account vouched for by an external identity provider."""
    if not body.email or not body.name:
        raise BadRequestError("Please provide email and name")
    user = find_by_email(body.email)
    if not user:
        password = generate_throwaway_password()
        user = create_user(body.name, body.email, password, password, auth_provider=AuthProvider.EXTERNAL)
        response.status_code = 201
    return token_response(user, issuer)


class ForgotPasswordBody(BaseModel):
    email: str | None = None

@router.post("/forgotPassword", dependencies=[Depends(limit_route(settings.reset_request_cooldown_seconds))])
def forgot_password(body: ForgotPasswordBody, notifier: Notifier = Depends(get_notifier)) -> dict:
    """RATE-LIMITED: Email a password reset PIN."""
    request_password_reset(body.email, notifier)
    return {"status": "success", "message": "PIN sent to email!"}


class VerifyPinBody(BaseModel):
    email: str | None = None
    pin: str | None = None

@router.post("/verifyPasswordResetPIN")
@router.post("/verifiyPasswordResetPIN", include_in_schema=False)
def verify_pin(body: VerifyPinBody) -> dict:
    verify_password_reset_pin(body.email, body.pin)
    return {"status": "success", "message": "PIN is correct"}


class ResetPasswordBody(CamelBody):
    email: str | None = None
    pin: str | None = None
    password: str | None = None
    password_confirm: str | None = Field(default=None, alias="passwordConfirm")

@router.patch("/resetPassword")
def reset_password_route(body: ResetPasswordBody, issuer: TokenIssuer = Depends(get_token_issuer)) -> dict:
    user = reset_password(body.email, body.pin, body.password, body.password_confirm)
    return token_response(user, issuer)


class UpdatePasswordBody(CamelBody):
    password_current: str | None = Field(default=None, alias="passwordCurrent")
    password: str | None = None
    password_confirm: str | None = Field(default=None, alias="passwordConfirm")

@router.patch("/updateMyPassword")
def update_my_password(
    body: UpdatePasswordBody,
    current_user: User = Depends(get_current_user),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> dict:
    """PROTECTED: Change password after confirming the current one."""
    if not body.password or not body.password_confirm or not body.password_current:
        raise BadRequestError("Please provide all the fields")
    if not current_user.check_password(body.password_current):
        raise UnauthorizedError("Your current password is wrong.")
    current_user.set_password(body.password, body.password_confirm)
    current_user.save()
    return token_response(current_user, issuer)
