"""Firebase Admin SDK bootstrap.

Credentials come from GOOGLE_APPLICATION_CREDENTIALS (or the ambient
service account on GCP). The same app backs Authentication and Firestore.
"""

from firebase_admin import firestore, get_app, initialize_app


def init_firebase() -> None:
    """Initialize Firebase Admin SDK (idempotent)."""
    try:
        get_app()
    except ValueError:
        initialize_app()


def get_firestore_client():
    """Return the Firestore client bound to the default Firebase app."""
    init_firebase()
    return firestore.client()
