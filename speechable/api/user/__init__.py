from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field

from speechable.models.user import User
from speechable.services.auth import get_current_user, restrict_to
from speechable.services.users import (
    AdminUserUpdate,
    ProfileUpdate,
    deactivate,
    find_by_id,
    list_users,
    update_by_id,
)
from speechable.utils.base.enums import UserRole
from speechable.utils.errors import BadRequestError, InternalError, NotFoundError


router = APIRouter()

require_admin = restrict_to(UserRole.ADMIN.value)


def user_response(user: User) -> dict:
    return {"status": "success", "data": {"user": user.to_output()}}


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)) -> dict:
    """PROTECTED: The caller's own profile."""
    return user_response(current_user)


class UpdateMeBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    email: str | None = None
    password: str | None = None
    password_confirm: str | None = Field(default=None, alias="passwordConfirm")

@router.patch("/updateMe")
def update_me(body: UpdateMeBody, current_user: User = Depends(get_current_user)) -> dict:
    """PROTECTED: Change name and/or email. Passwords go through /updateMyPassword."""
    if body.password or body.password_confirm:
        raise BadRequestError("This route is not for password updates. Please use /updateMyPassword.")
    user = update_by_id(str(current_user.id), ProfileUpdate(name=body.name, email=body.email))
    return user_response(user)


@router.delete("/deleteMe", status_code=204)
def delete_me(current_user: User = Depends(get_current_user)) -> Response:
    """PROTECTED: Deactivate the caller's account."""
    deactivate(str(current_user.id))
    return Response(status_code=204)


@router.get("/", dependencies=[Depends(require_admin)])
def get_all_users(include_inactive: bool = False) -> dict:
    """ADMIN: List accounts."""
    users = list_users(include_inactive=include_inactive)
    return {
        "status": "success",
        "results": len(users),
        "data": {"users": [user.to_output() for user in users]},
    }


@router.post("/", dependencies=[Depends(require_admin)])
def create_user_route() -> dict:
    raise InternalError("This route is not defined! Please use /signup instead")


@router.get("/{user_id}", dependencies=[Depends(require_admin)])
def get_user(user_id: str) -> dict:
    """ADMIN: Any account, deactivated ones included."""
    user = find_by_id(user_id, include_inactive=True)
    if not user:
        raise NotFoundError("No document found with that ID")
    return user_response(user)


@router.patch("/{user_id}", dependencies=[Depends(require_admin)])
def update_user(user_id: str, body: AdminUserUpdate) -> dict:
    """ADMIN: Change name, email or role. Never passwords."""
    user = update_by_id(user_id, body, include_inactive=True)
    if not user:
        raise NotFoundError("No document found with that ID")
    return user_response(user)


@router.delete("/{user_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_user(user_id: str) -> Response:
    """ADMIN: Deactivate an account."""
    if not deactivate(user_id):
        raise NotFoundError("No document found with that ID")
    return Response(status_code=204)
