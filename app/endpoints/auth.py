from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.constants import OAuthProviderEnum
from app.core.exceptions import AuthError, AuthErrorReason, ValidationFailed
from app.schemas.auth import EmailForm, LoginForm, ResetPasswordForm
from app.schemas.user import RegisterForm
from app.services.auth import auth_service
from app.services.oauth import oauth_service
from app.utils import deps
from app.utils.forms import validation_errors
from app.utils.templating import redirect, render

router = APIRouter(dependencies=[Depends(deps.get_current_context)])

RESET_REQUESTED_MESSAGE = "If an account exists with that email, a password reset link has been sent."
RESEND_MESSAGE = "If an unverified account exists with that email, a new verification link has been sent."


def _form_values(form) -> dict:
    # Never echo passwords back into the page
    return {k: v for k, v in form.items() if "password" not in k}


@router.get("/login")
def login_page(request: Request):
    if getattr(request.state, "user_context", None):
        return RedirectResponse(request.state.user_context.home_url, status_code=303)
    return render(request, "auth/login.html")


@router.post("/login")
def login(
    request: Request,
    db: Session = Depends(deps.get_db),
    form=Depends(deps.get_form),
):
    try:
        data = LoginForm.model_validate(dict(form))
        context = auth_service.login(db, request.session, email=data.email, password=data.password)
    except ValidationError as e:
        return render(request, "auth/login.html", {"form": _form_values(form), "errors": validation_errors(e)}, status_code=400)
    except AuthError as e:
        return render(request, "auth/login.html", {
            "form": _form_values(form),
            "errors": {"__all__": e.message},
            "show_resend": e.reason == AuthErrorReason.UNVERIFIED_EMAIL,
        }, status_code=400)
    return redirect(request, context.home_url, f"Welcome back, {context.display_name}!", "success")


@router.get("/register")
def register_page(request: Request):
    return render(request, "auth/register.html")


@router.post("/register")
def register(
    request: Request,
    db: Session = Depends(deps.get_db),
    form=Depends(deps.get_form),
):
    try:
        data = RegisterForm.model_validate(dict(form))
        auth_service.register(db, form=data)
    except ValidationError as e:
        return render(request, "auth/register.html", {"form": _form_values(form), "errors": validation_errors(e)}, status_code=400)
    except ValidationFailed as e:
        return render(request, "auth/register.html", {"form": _form_values(form), "errors": e.errors}, status_code=400)
    return redirect(
        request,
        "/auth/login",
        "Registration successful! Please check your email to verify your account.",
        "success",
    )


@router.get("/verify/{token}")
def verify_email(token: str, request: Request, db: Session = Depends(deps.get_db)):
    try:
        auth_service.verify_email(db, token=token)
    except AuthError as e:
        return redirect(request, "/auth/login", e.message, "error")
    return redirect(request, "/auth/login", "Your email has been verified. You can now log in.", "success")


@router.get("/resend-verification")
def resend_verification_page(request: Request):
    return render(request, "auth/resend_verification.html")


@router.post("/resend-verification")
def resend_verification(
    request: Request,
    db: Session = Depends(deps.get_db),
    form=Depends(deps.get_form),
):
    try:
        data = EmailForm.model_validate(dict(form))
    except ValidationError as e:
        return render(request, "auth/resend_verification.html", {"form": dict(form), "errors": validation_errors(e)}, status_code=400)
    auth_service.resend_verification(db, email=data.email)
    return redirect(request, "/auth/login", RESEND_MESSAGE, "info")


@router.get("/forgot-password")
def forgot_password_page(request: Request):
    return render(request, "auth/forgot_password.html")


@router.post("/forgot-password")
def forgot_password(
    request: Request,
    db: Session = Depends(deps.get_db),
    form=Depends(deps.get_form),
):
    try:
        data = EmailForm.model_validate(dict(form))
    except ValidationError as e:
        return render(request, "auth/forgot_password.html", {"form": dict(form), "errors": validation_errors(e)}, status_code=400)
    auth_service.request_password_reset(db, email=data.email)
    return redirect(request, "/auth/login", RESET_REQUESTED_MESSAGE, "info")


@router.get("/reset-password/{token}")
def reset_password_page(token: str, request: Request, db: Session = Depends(deps.get_db)):
    try:
        auth_service.check_reset_token(db, token=token)
    except AuthError as e:
        return redirect(request, "/auth/forgot-password", e.message, "error")
    return render(request, "auth/reset_password.html", {"token": token})


@router.post("/reset-password/{token}")
def reset_password(
    token: str,
    request: Request,
    db: Session = Depends(deps.get_db),
    form=Depends(deps.get_form),
):
    try:
        data = ResetPasswordForm.model_validate(dict(form))
        auth_service.reset_password(db, token=token, new_password=data.password)
    except ValidationError as e:
        return render(request, "auth/reset_password.html", {"token": token, "errors": validation_errors(e)}, status_code=400)
    except AuthError as e:
        return redirect(request, "/auth/forgot-password", e.message, "error")
    return redirect(request, "/auth/login", "Your password has been reset. You can now log in.", "success")


@router.api_route("/logout", methods=["GET", "POST"])
def logout(request: Request):
    auth_service.logout(request.session)
    return redirect(request, "/", "You have been logged out.", "info")


@router.get("/{provider}/login")
def oauth_login(provider: OAuthProviderEnum, request: Request):
    try:
        url = oauth_service.authorization_url(provider, request.session)
    except AuthError as e:
        return redirect(request, "/auth/login", e.message, "error")
    return RedirectResponse(url, status_code=303)


@router.get("/{provider}/callback")
async def oauth_callback(
    provider: OAuthProviderEnum,
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(deps.get_db),
):
    if error:
        request.session.pop("oauth_state", None)
        return redirect(request, "/auth/login", f"{provider.value.title()} sign in was cancelled.", "error")
    try:
        profile = await oauth_service.fetch_identity(provider, request.session, code=code, state=state)
        user = await run_in_threadpool(oauth_service.get_or_create_user, db, provider, profile)
    except AuthError as e:
        return redirect(request, "/auth/login", e.message, "error")
    context = auth_service.start_session(request.session, user)
    return redirect(request, context.home_url, f"Welcome, {context.display_name}!", "success")
