"""
Identity resolution. The upstream gateway verifies the caller's token and
forwards the resolved identity in X-User-Id, X-User-Role and X-User-Email.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from . import crud
from .database import get_db
from .errors import ControllerNotFoundError, ForbiddenError, UnauthenticatedError
from .models import Controller, Role
from .schemas import Identity


def get_identity(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
) -> Identity:
    if not x_user_id or not x_user_role:
        raise UnauthenticatedError("Unauthorized")
    try:
        return Identity(user_id=int(x_user_id), role=Role(x_user_role.upper()), email=x_user_email)
    except ValueError:
        raise UnauthenticatedError("Invalid identity")


def require_role(role: Role):
    def dependency(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role != role:
            raise ForbiddenError("Forbidden")
        return identity
    return dependency


require_admin = require_role(Role.ADMIN)
require_controller = require_role(Role.CONTROLLER)


def get_current_controller(
    identity: Identity = Depends(require_controller),
    db: Session = Depends(get_db),
) -> Controller:
    with crud.store_errors(db, "controller_lookup"):
        controller = crud.get_controller_by_user(db, identity.user_id)
    if controller is None:
        raise ControllerNotFoundError("Controller not found")
    return controller
