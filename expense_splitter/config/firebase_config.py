"""
Firebase Configuration

Lazily initializes the Firebase Admin SDK and hands out a Firestore client.

Credentials come from the FIREBASE_CREDENTIALS environment variable (path to
a service account JSON file). When it is unset, application default
credentials are used.

Functions:
    get_db: Return the Firestore client, or None if it cannot be created.
"""

import logging

import firebase_admin
from firebase_admin import credentials, firestore
from google.auth.exceptions import GoogleAuthError

from expense_splitter.config import settings


logger = logging.getLogger(__name__)

_db = None


def get_db():
    """
    Get the shared Firestore client.

    Returns:
        google.cloud.firestore.Client | None: The client, or None when
        Firebase could not be initialized (missing credentials, bad file).
    """
    global _db
    if _db is not None:
        return _db

    try:
        if not firebase_admin._apps:
            if settings.FIREBASE_CREDENTIALS:
                cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS)
            else:
                cred = credentials.ApplicationDefault()
            firebase_admin.initialize_app(cred)
        _db = firestore.client()
    except (ValueError, OSError, GoogleAuthError) as e:
        logger.error("Could not initialize Firestore: %s", e)
        return None

    return _db
