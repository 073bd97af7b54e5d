"""Firebase Admin app bootstrap shared by the push gateway and ID-token auth."""
import logging
import threading

import firebase_admin
from firebase_admin import credentials

from ..config import Settings

logger = logging.getLogger(__name__)

_APP_NAME = "notifier"
_lock = threading.Lock()


def get_firebase_app(config: Settings) -> firebase_admin.App:
    """Return the Firebase app, initializing it from ``config`` on first use."""
    with _lock:
        try:
            return firebase_admin.get_app(_APP_NAME)
        except ValueError:
            pass

        if not config.firebase_configured:
            raise RuntimeError(
                "Firebase Admin is not configured "
                "(FIREBASE_PROJECT_ID, FIREBASE_CLIENT_EMAIL, FIREBASE_PRIVATE_KEY)"
            )

        cred = credentials.Certificate({
            "type": "service_account",
            "project_id": config.firebase_project_id,
            "client_email": config.firebase_client_email,
            "private_key": config.firebase_private_key_pem,
            "token_uri": "https://oauth2.googleapis.com/token",
        })
        app = firebase_admin.initialize_app(cred, {"projectId": config.firebase_project_id}, name=_APP_NAME)
        logger.info(f"Firebase Admin initialized for project {config.firebase_project_id}")
        return app
