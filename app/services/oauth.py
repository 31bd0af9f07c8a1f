import secrets
from typing import MutableMapping, Optional
from urllib.parse import urlencode

import httpx # type: ignore
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import OAuthProviderEnum, RoleEnum
from app.core.exceptions import AuthError, AuthErrorReason
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.auth import OAuthProfile
from app.utils.logger import setup_logger

logger = setup_logger("oauth_service", "oauth.log")

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

FACEBOOK_AUTH_URL = "https://www.facebook.com/v18.0/dialog/oauth"
FACEBOOK_TOKEN_URL = "https://graph.facebook.com/v18.0/oauth/access_token"
FACEBOOK_PROFILE_URL = "https://graph.facebook.com/me"

STATE_SESSION_KEY = "oauth_state"


class OAuthService:
    def is_configured(self, provider: OAuthProviderEnum) -> bool:
        if provider == OAuthProviderEnum.GOOGLE:
            return bool(settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET)
        return bool(settings.FACEBOOK_APP_ID and settings.FACEBOOK_APP_SECRET)

    def authorization_url(self, provider: OAuthProviderEnum, session: MutableMapping) -> str:
        """Store a fresh ``state`` in the session and build the provider's consent URL."""
        if not self.is_configured(provider):
            raise AuthError(AuthErrorReason.PROVIDER_NOT_CONFIGURED)

        state = secrets.token_urlsafe(32)
        session[STATE_SESSION_KEY] = {"provider": provider.value, "value": state}

        if provider == OAuthProviderEnum.GOOGLE:
            params = {
                "client_id": settings.GOOGLE_CLIENT_ID,
                "redirect_uri": settings.google_redirect_uri,
                "response_type": "code",
                "scope": "openid email profile",
                "state": state,
                "access_type": "online",
                "prompt": "select_account",
            }
            return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

        params = {
            "client_id": settings.FACEBOOK_APP_ID,
            "redirect_uri": settings.facebook_redirect_uri,
            "response_type": "code",
            "scope": "email,public_profile",
            "state": state,
        }
        return f"{FACEBOOK_AUTH_URL}?{urlencode(params)}"

    def check_state(self, provider: OAuthProviderEnum, session: MutableMapping, state: Optional[str]) -> None:
        # The stored state is single use whether or not it matches
        stored = session.pop(STATE_SESSION_KEY, None)
        if (
            not state
            or not isinstance(stored, dict)
            or stored.get("provider") != provider.value
            or not secrets.compare_digest(str(stored.get("value", "")), state)
        ):
            logger.warning(f"{provider.value} callback rejected: state mismatch")
            raise AuthError(AuthErrorReason.STATE_MISMATCH)

    async def _exchange_code(self, provider: OAuthProviderEnum, code: str) -> str:
        async with httpx.AsyncClient(timeout=settings.OAUTH_HTTP_TIMEOUT) as client:
            if provider == OAuthProviderEnum.GOOGLE:
                response = await client.post(GOOGLE_TOKEN_URL, data={
                    "code": code,
                    "client_id": settings.GOOGLE_CLIENT_ID,
                    "client_secret": settings.GOOGLE_CLIENT_SECRET,
                    "redirect_uri": settings.google_redirect_uri,
                    "grant_type": "authorization_code",
                })
            else:
                response = await client.get(FACEBOOK_TOKEN_URL, params={
                    "code": code,
                    "client_id": settings.FACEBOOK_APP_ID,
                    "client_secret": settings.FACEBOOK_APP_SECRET,
                    "redirect_uri": settings.facebook_redirect_uri,
                })
        payload = response.json() if response.status_code == 200 else {}
        access_token = payload.get("access_token")
        if not access_token:
            logger.error(f"{provider.value} token exchange failed with status {response.status_code}")
            raise AuthError(AuthErrorReason.PROVIDER_ERROR)
        return access_token

    async def _fetch_profile(self, provider: OAuthProviderEnum, access_token: str) -> dict:
        async with httpx.AsyncClient(timeout=settings.OAUTH_HTTP_TIMEOUT) as client:
            if provider == OAuthProviderEnum.GOOGLE:
                response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"}
                )
            else:
                response = await client.get(FACEBOOK_PROFILE_URL, params={
                    "fields": "id,name,email,first_name,last_name,picture.type(large)",
                    "access_token": access_token,
                })
        if response.status_code != 200:
            logger.error(f"{provider.value} profile request failed with status {response.status_code}")
            raise AuthError(AuthErrorReason.PROVIDER_ERROR)
        return response.json()

    def _normalize_profile(self, provider: OAuthProviderEnum, data: dict) -> OAuthProfile:
        provider_id = data.get("id")
        if not provider_id:
            raise AuthError(AuthErrorReason.PROVIDER_ERROR)
        email = data.get("email")
        if not email:
            logger.warning(f"{provider.value} profile {provider_id} did not include an email")
            raise AuthError(AuthErrorReason.NO_EMAIL_SCOPE)

        if provider == OAuthProviderEnum.GOOGLE:
            first_name = data.get("given_name") or ""
            last_name = data.get("family_name") or ""
            avatar = data.get("picture") or ""
        else:
            first_name = data.get("first_name") or ""
            last_name = data.get("last_name") or ""
            avatar = ((data.get("picture") or {}).get("data") or {}).get("url") or ""

        try:
            return OAuthProfile(
                provider_id=str(provider_id),
                email=email.lower(),
                first_name=first_name,
                last_name=last_name,
                avatar=avatar,
            )
        except ValueError:
            raise AuthError(AuthErrorReason.NO_EMAIL_SCOPE)

    async def fetch_identity(
        self, provider: OAuthProviderEnum, session: MutableMapping, *, code: Optional[str], state: Optional[str]
    ) -> OAuthProfile:
        """Validate ``state`` and trade the authorization code for the provider profile."""
        self.check_state(provider, session, state)
        if not self.is_configured(provider):
            raise AuthError(AuthErrorReason.PROVIDER_NOT_CONFIGURED)
        if not code:
            raise AuthError(AuthErrorReason.PROVIDER_ERROR)

        try:
            access_token = await self._exchange_code(provider, code)
            data = await self._fetch_profile(provider, access_token)
        except httpx.HTTPError as e:
            logger.error(f"{provider.value} request failed: {e}")
            raise AuthError(AuthErrorReason.PROVIDER_ERROR)
        except ValueError as e:
            logger.error(f"{provider.value} returned an unreadable response: {e}")
            raise AuthError(AuthErrorReason.PROVIDER_ERROR)
        return self._normalize_profile(provider, data)

    def _unique_username(self, db: Session, email: str) -> str:
        base = "".join(ch for ch in email.split("@")[0] if ch.isalnum() or ch in "._-")[:90] or "user"
        if len(base) < 3:
            base = f"{base}user"
        candidate = base
        suffix = 1
        while crud_user.username_taken(db, username=candidate):
            candidate = f"{base}{suffix}"
            suffix += 1
        return candidate

    def _find_link_or_create(self, db: Session, provider: OAuthProviderEnum, profile: OAuthProfile) -> User:
        user = crud_user.get_by_oauth_identity(db, provider=provider, provider_id=profile.provider_id)
        if user:
            if profile.avatar and user.avatar != profile.avatar:
                user.avatar = profile.avatar
                db.commit()
            return user

        user = crud_user.get_by_email(db, email=profile.email)
        if user:
            if user.oauth_provider is None:
                user.oauth_provider = provider
                user.oauth_provider_id = profile.provider_id
                if profile.avatar:
                    user.avatar = profile.avatar
                logger.info(f"Linked {provider.value} identity to existing user {user.id}")
            else:
                logger.info(
                    f"User {user.id} signed in with {provider.value} by email; keeping {user.oauth_provider.value} link"
                )
            user.email_verified = True
            user.email_verification_token = None
            user.email_verification_expires_at = None
            db.commit()
            return user

        user = User(
            username=self._unique_username(db, profile.email),
            email=profile.email,
            password_hash=None,
            first_name=profile.first_name or None,
            last_name=profile.last_name or None,
            role=RoleEnum.STUDENT,
            oauth_provider=provider,
            oauth_provider_id=profile.provider_id,
            avatar=profile.avatar or None,
            email_verified=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created user {user.id} from {provider.value} sign in")
        return user

    def get_or_create_user(self, db: Session, provider: OAuthProviderEnum, profile: OAuthProfile) -> User:
        """Find, link or create the account; a unique-constraint conflict restarts the lookup."""
        attempts = max(1, settings.OAUTH_ACCOUNT_RETRIES)
        for attempt in range(1, attempts + 1):
            try:
                return self._find_link_or_create(db, provider, profile)
            except IntegrityError:
                db.rollback()
                logger.warning(f"Account conflict for {provider.value} sign in (attempt {attempt}/{attempts})")
        raise AuthError(AuthErrorReason.PROVIDER_ERROR)


oauth_service = OAuthService()
