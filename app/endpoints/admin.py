from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.core.exceptions import PermissionDeniedError, ValidationFailed
from app.schemas.user import UserAdminUpdate, UserContext
from app.services.dashboard import dashboard_service
from app.services.user import user_service
from app.utils import deps
from app.utils.forms import validation_errors
from app.utils.templating import redirect, render

router = APIRouter(dependencies=[Depends(deps.get_current_context)])


@router.get("")
def admin_dashboard(
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_admin),
):
    return render(request, "admin/dashboard.html", dashboard_service.admin_dashboard(db))


@router.get("/users")
def list_users(
    request: Request,
    role: Optional[str] = None,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_admin),
):
    role_filter = RoleEnum(role) if role in {r.value for r in RoleEnum} else None
    return render(request, "admin/users/index.html", {
        "users": user_service.list_users(db, role=role_filter),
        "role_counts": user_service.role_counts(db),
        "role_filter": role_filter,
        "roles": list(RoleEnum),
    })


@router.get("/users/{user_id}/edit")
def edit_user_page(
    user_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_admin),
):
    user = user_service.get_user(db, user_id=user_id)
    return render(request, "admin/users/edit.html", {"user": user, "roles": list(RoleEnum)})


@router.post("/users/{user_id}")
def update_user(
    user_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_admin),
    form=Depends(deps.get_form),
):
    user = user_service.get_user(db, user_id=user_id)
    try:
        data = UserAdminUpdate.model_validate(dict(form))
        user_service.update_user(db, user_id=user.id, form=data)
    except ValidationError as e:
        errors = validation_errors(e)
    except ValidationFailed as e:
        errors = e.errors
    else:
        return redirect(request, "/admin/users", "User updated successfully.", "success")
    return render(request, "admin/users/edit.html", {
        "user": user,
        "roles": list(RoleEnum),
        "form": {k: v for k, v in form.items() if k != "password"},
        "errors": errors,
    }, status_code=400)


@router.post("/users/{user_id}/delete")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_admin),
):
    try:
        user_service.delete_user(db, user_id=user_id, current_user_context=context)
    except PermissionDeniedError as e:
        return redirect(request, "/admin/users", e.message, "error")
    return redirect(request, "/admin/users", "User deleted successfully.", "success")
