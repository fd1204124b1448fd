"""
Firestore persistence for Leisure Finder.
Same functions as db.py, backed by firebase-admin. Users live in the
`users` collection (preferences blob + calendarEvents); history records
go to one collection per kind.
"""

import logging

import firebase_admin
from firebase_admin import credentials, firestore

import config

logger = logging.getLogger(__name__)

_client = None


def is_configured():
    return bool(config.FIREBASE_CREDENTIALS_PATH or config.FIREBASE_PROJECT_ID)


def get_client():
    global _client
    if _client is None:
        if not firebase_admin._apps:
            if config.FIREBASE_CREDENTIALS_PATH:
                cred = credentials.Certificate(config.FIREBASE_CREDENTIALS_PATH)
            else:
                cred = credentials.ApplicationDefault()
            options = {'projectId': config.FIREBASE_PROJECT_ID} if config.FIREBASE_PROJECT_ID else None
            firebase_admin.initialize_app(cred, options)
        _client = firestore.client()
    return _client


def init_db():
    get_client()
    logger.info("Firestore initialized")


def _user_ref(user_id):
    return get_client().collection('users').document(user_id)


def get_user(user_id):
    snapshot = _user_ref(user_id).get()
    if not snapshot.exists:
        return None
    data = snapshot.to_dict() or {}
    return {
        "preferences": data.get('preferences') or {},
        "calendarEvents": data.get('calendarEvents') or [],
    }


def get_preferences(user_id):
    user = get_user(user_id)
    return user["preferences"] if user else None


def set_preferences(user_id, prefs):
    """Overwrite the whole preferences field; other user fields are kept."""
    _user_ref(user_id).set(
        {'preferences': prefs, 'updatedAt': firestore.SERVER_TIMESTAMP},
        merge=['preferences', 'updatedAt'],
    )


# ---------- Saved activities ----------

def get_saved_activities(user_id):
    return list((get_preferences(user_id) or {}).get('savedActivities') or [])


def add_saved_activity(user_id, activity_id):
    """Add an id to the saved list; saving twice is a no-op."""
    prefs = get_preferences(user_id) or {}
    saved = list(prefs.get('savedActivities') or [])
    if activity_id not in saved:
        saved.append(activity_id)
        set_preferences(user_id, dict(prefs, savedActivities=saved))
    return saved


def remove_saved_activity(user_id, activity_id):
    prefs = get_preferences(user_id)
    if prefs is None:
        return []
    saved = [a for a in (prefs.get('savedActivities') or []) if a != activity_id]
    set_preferences(user_id, dict(prefs, savedActivities=saved))
    return saved


def add_calendar_event(user_id, record):
    ref = _user_ref(user_id)
    if not ref.get().exists:
        return False
    ref.update({'calendarEvents': firestore.ArrayUnion([record])})
    return True


def log_history(collection, record):
    try:
        get_client().collection(collection).add(record)
    except Exception:
        logger.exception("Firestore write error for %s, skipping", collection)


def get_history(collection, user_id):
    query = get_client().collection(collection).where(
        filter=firestore.FieldFilter('userId', '==', user_id)
    )
    return [doc.to_dict() for doc in query.stream()]
