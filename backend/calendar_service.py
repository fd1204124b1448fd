"""
Google Calendar integration.
OAuth2 consent URL and code exchange, event creation and listing.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone

import requests

import config
from errors import ProviderError, ValidationError

logger = logging.getLogger(__name__)

AUTH_URL = 'https://accounts.google.com/o/oauth2/v2/auth'
TOKEN_URL = 'https://oauth2.googleapis.com/token'
USERINFO_URL = 'https://www.googleapis.com/oauth2/v2/userinfo'
EVENTS_URL = 'https://www.googleapis.com/calendar/v3/calendars/primary/events'

CALENDAR_SCOPE = 'https://www.googleapis.com/auth/calendar'
CALENDAR_READONLY_SCOPE = 'https://www.googleapis.com/auth/calendar.readonly'


def sign_state(secret_key, kind='calendar'):
    """CSRF state of the form kind:nonce:signature."""
    nonce = secrets.token_urlsafe(32)
    sig = hmac.new(secret_key.encode(), f"{kind}:{nonce}".encode(), hashlib.sha256).hexdigest()[:16]
    return f"{kind}:{nonce}:{sig}"


def verify_state(secret_key, state):
    if not state or state.count(':') < 2:
        return False
    kind, nonce, sig = state.split(':', 2)
    expected = hmac.new(secret_key.encode(), f"{kind}:{nonce}".encode(), hashlib.sha256).hexdigest()[:16]
    return hmac.compare_digest(sig, expected)


def build_auth_url(scopes, state):
    params = {
        'client_id': config.GOOGLE_CLIENT_ID,
        'redirect_uri': config.GOOGLE_REDIRECT_URI,
        'response_type': 'code',
        'scope': ' '.join(['openid', 'email'] + list(scopes)),
        'state': state,
        'access_type': 'offline',
        'prompt': 'consent',
    }
    return AUTH_URL + '?' + '&'.join(f'{k}={requests.utils.quote(str(v))}' for k, v in params.items())


def exchange_code(code):
    """Trade an authorization code for tokens."""
    try:
        response = requests.post(TOKEN_URL, data={
            'code': code,
            'client_id': config.GOOGLE_CLIENT_ID,
            'client_secret': config.GOOGLE_CLIENT_SECRET,
            'redirect_uri': config.GOOGLE_REDIRECT_URI,
            'grant_type': 'authorization_code',
        }, timeout=config.REQUEST_TIMEOUT_SECONDS)
        tokens = response.json()
    except (requests.RequestException, ValueError) as e:
        raise ProviderError("Error contacting Google OAuth", error=str(e))

    if 'error' in tokens:
        raise ProviderError(
            "Google OAuth error",
            error=tokens.get('error_description', tokens['error']),
            status_code=400,
        )
    return tokens


def get_user_email(access_token):
    try:
        response = requests.get(
            USERINFO_URL,
            headers={'Authorization': f'Bearer {access_token}'},
            timeout=config.REQUEST_TIMEOUT_SECONDS,
        )
        return response.json().get('email')
    except (requests.RequestException, ValueError) as e:
        raise ProviderError("Error fetching Google user info", error=str(e))


def _parse_datetime(value):
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid date/time: {value}")


def build_event(title, start, end=None, description=None, location=None):
    """Calendar event body; the end defaults to one hour after the start."""
    start_dt = _parse_datetime(start)
    end_dt = _parse_datetime(end) if end else start_dt + timedelta(hours=1)
    return {
        'summary': title,
        'description': description or '',
        'location': location or '',
        'start': {'dateTime': start_dt.isoformat(), 'timeZone': config.CALENDAR_TIMEZONE},
        'end': {'dateTime': end_dt.isoformat(), 'timeZone': config.CALENDAR_TIMEZONE},
        'reminders': {'useDefault': True},
    }


def _calendar_request(method, access_token, **kwargs):
    try:
        response = requests.request(
            method,
            EVENTS_URL,
            headers={
                'Authorization': f'Bearer {access_token}',
                'Content-Type': 'application/json',
            },
            timeout=config.REQUEST_TIMEOUT_SECONDS,
            **kwargs,
        )
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        raise ProviderError("Error contacting Google Calendar", error=str(e))

    if not response.ok:
        message = data.get('error', {}).get('message', 'Calendar request failed')
        logger.error("Calendar error: %s", message)
        raise ProviderError(message, status_code=response.status_code)
    return data


def insert_event(access_token, event):
    result = _calendar_request('POST', access_token, json=event)
    logger.info("Calendar event created: %s", result.get('id'))
    return result


def list_upcoming_events(access_token, days=7):
    now = datetime.now(timezone.utc)
    data = _calendar_request('GET', access_token, params={
        'timeMin': now.isoformat(),
        'timeMax': (now + timedelta(days=days)).isoformat(),
        'singleEvents': 'true',
        'orderBy': 'startTime',
    })
    return data.get('items', [])
