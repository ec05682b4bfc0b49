"""
Administrative account routes.

The token role opens the gate; the actor's stored role decides which
accounts it may manage.
"""
from fastapi import APIRouter, Depends, Request

from .dependencies import get_admin_service, get_current_user, require_admin_or_above
from .models import User
from .schemas import MessageResponse, RoleUpdate, StatusUpdate, UserResponse
from .service import AccountAdminService

router = APIRouter(
    prefix="/users",
    tags=["User Administration"],
    dependencies=[Depends(require_admin_or_above)],
)


@router.get("/{user_id}", response_model=UserResponse, summary="Get Account")
def get_account_route(
    user_id: int,
    actor: User = Depends(get_current_user),
    service: AccountAdminService = Depends(get_admin_service)
):
    return service.get_account(actor, user_id)


@router.put("/{user_id}/status", response_model=UserResponse, summary="Change Account Status")
def change_status_route(
    user_id: int,
    data: StatusUpdate,
    request: Request,
    actor: User = Depends(get_current_user),
    service: AccountAdminService = Depends(get_admin_service)
):
    return service.change_status(actor, user_id, data.status, request=request)


@router.put("/{user_id}/role", response_model=UserResponse, summary="Change Account Role")
def change_role_route(
    user_id: int,
    data: RoleUpdate,
    request: Request,
    actor: User = Depends(get_current_user),
    service: AccountAdminService = Depends(get_admin_service)
):
    return service.change_role(actor, user_id, data.role, request=request)


@router.delete("/{user_id}", response_model=MessageResponse, summary="Soft Delete Account")
def delete_account_route(
    user_id: int,
    request: Request,
    actor: User = Depends(get_current_user),
    service: AccountAdminService = Depends(get_admin_service)
):
    service.delete_account(actor, user_id, request=request)
    return {"message": "User deleted successfully"}
