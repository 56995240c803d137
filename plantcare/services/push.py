"""
Push delivery through Firebase Cloud Messaging.

The dispatcher only knows the ``PushChannel`` shape: ``send`` returns the
provider's message id or raises ``PushDeliveryError``. The Firebase Admin SDK
is synchronous, so each send runs in a worker thread.
"""
import asyncio
import logging
from typing import Optional, Protocol

import firebase_admin
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging

from plantcare.core.config import Settings, settings as default_settings
from plantcare.core.exceptions import (
    INVALID_REGISTRATION_TOKEN,
    TOKEN_NOT_REGISTERED,
    PushChannelUnavailableError,
    PushDeliveryError,
)
from plantcare.core.logging import mask_token

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "plantcare"


class PushChannel(Protocol):
    async def send(self, token: str, title: str, body: str, data: Optional[dict[str, str]] = None) -> str:
        ...


def _service_account(cfg: Settings) -> dict:
    return {
        "type": "service_account",
        "project_id": cfg.FIREBASE_PROJECT_ID,
        "private_key_id": cfg.FIREBASE_PRIVATE_KEY_ID,
        "private_key": cfg.firebase_private_key,
        "client_email": cfg.FIREBASE_CLIENT_EMAIL,
        "client_id": cfg.FIREBASE_CLIENT_ID,
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
        "client_x509_cert_url": (
            f"https://www.googleapis.com/robot/v1/metadata/x509/{cfg.FIREBASE_CLIENT_EMAIL}"
        ),
    }


def initialize_firebase(cfg: Settings = default_settings) -> firebase_admin.App:
    """Return the named Firebase app, creating it on first use. Raises PushChannelUnavailableError."""
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass

    if not cfg.FIREBASE_PROJECT_ID:
        raise PushChannelUnavailableError("FIREBASE_PROJECT_ID is not configured")

    try:
        cert = credentials.Certificate(_service_account(cfg))
        app = firebase_admin.initialize_app(
            cert, {"projectId": cfg.FIREBASE_PROJECT_ID}, name=FIREBASE_APP_NAME
        )
    except (ValueError, IOError) as exc:
        raise PushChannelUnavailableError(f"Firebase initialisation failed: {exc}") from exc

    logger.info("initialize_firebase: Firebase Admin SDK initialised for project %s", cfg.FIREBASE_PROJECT_ID)
    return app


def _error_code(exc: firebase_exceptions.FirebaseError) -> str:
    if isinstance(exc, messaging.UnregisteredError):
        return TOKEN_NOT_REGISTERED
    if isinstance(exc, firebase_exceptions.InvalidArgumentError):
        # FCM reports malformed registration tokens as INVALID_ARGUMENT
        return INVALID_REGISTRATION_TOKEN
    return f"messaging/{str(exc.code).lower().replace('_', '-')}"


class FirebasePushChannel:
    def __init__(self, app: firebase_admin.App, link: str):
        self._app = app
        self._link = link

    @classmethod
    def from_settings(cls, cfg: Settings = default_settings) -> "FirebasePushChannel":
        return cls(initialize_firebase(cfg), cfg.FRONTEND_URL)

    def _build_message(self, token: str, title: str, body: str, data: Optional[dict[str, str]]) -> messaging.Message:
        return messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=data or {},
            webpush=messaging.WebpushConfig(
                notification=messaging.WebpushNotification(
                    title=title,
                    body=body,
                    icon="/pwa-192x192.png",
                    badge="/pwa-192x192.png",
                    require_interaction=True,
                ),
                # FCM rejects non-HTTPS click-through links, so local dev sends none
                fcm_options=(
                    messaging.WebpushFCMOptions(link=self._link)
                    if self._link.startswith("https://") else None
                ),
            ),
        )

    async def send(self, token: str, title: str, body: str, data: Optional[dict[str, str]] = None) -> str:
        message = self._build_message(token, title, body, data)
        try:
            return await asyncio.to_thread(messaging.send, message, app=self._app)
        except firebase_exceptions.FirebaseError as exc:
            code = _error_code(exc)
            logger.warning("push: send to %s failed with %s: %s", mask_token(token), code, exc)
            raise PushDeliveryError(code, str(exc)) from exc
