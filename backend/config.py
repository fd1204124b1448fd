"""
Configuration for the Leisure Finder backend.
Values come from the environment (a .env file is loaded if present).
"""

import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Google Places / Maps
GOOGLE_PLACES_API_KEY = os.environ.get('GOOGLE_PLACES_API_KEY') or os.environ.get('GOOGLE_MAPS_API_KEY', '')
GOOGLE_PLACES_BASE_URL = 'https://maps.googleapis.com/maps/api/place'

# Groq LLM
GROQ_API_KEY = os.environ.get('GROQ_API_KEY', '')
GROQ_API_URL = 'https://api.groq.com/openai/v1/chat/completions'
GROQ_MODEL = os.environ.get('GROQ_MODEL', 'llama-3.1-8b-instant')
GROQ_LARGE_MODEL = os.environ.get('GROQ_LARGE_MODEL', 'llama-3.3-70b-versatile')

# Google Cloud Vision / Speech-to-Text (REST, API key auth)
GOOGLE_CLOUD_API_KEY = os.environ.get('GOOGLE_CLOUD_API_KEY', '')
VISION_API_URL = 'https://vision.googleapis.com/v1/images:annotate'
SPEECH_API_URL = 'https://speech.googleapis.com/v1/speech:recognize'

# Google OAuth / Calendar
GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID', '')
GOOGLE_CLIENT_SECRET = os.environ.get('GOOGLE_CLIENT_SECRET', '')
GOOGLE_REDIRECT_URI = os.environ.get('GOOGLE_REDIRECT_URI', 'http://localhost:5001/api/calendar/callback')
CALENDAR_TIMEZONE = os.environ.get('CALENDAR_TIMEZONE', 'America/Los_Angeles')

# Persistence
FIREBASE_CREDENTIALS_PATH = os.environ.get('FIREBASE_CREDENTIALS_PATH', '')
FIREBASE_PROJECT_ID = os.environ.get('FIREBASE_PROJECT_ID', '')
DATABASE_URL = os.environ.get(
    'DATABASE_URL',
    os.path.join(os.path.dirname(os.path.abspath(__file__)), 'leisure_finder.db'),
)

# Flask
SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
FRONTEND_URL = os.environ.get('FRONTEND_URL', '').rstrip('/')

# Search defaults (Portland, OR)
DEFAULT_CENTER = {'lat': 45.5152, 'lng': -122.6784}
DEFAULT_RADIUS_METERS = 10000
RESULTS_PER_TYPE = 5
REQUEST_TIMEOUT_SECONDS = 10

ACTIVITY_TYPES = [
    'outdoor', 'indoor', 'cultural', 'entertainment', 'sports',
    'culinary', 'educational', 'nightlife', 'wellness', 'other',
]

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging():
    """Configure the root logger once for the whole process."""
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))


def key_prefix(key):
    """Safe representation of an API key for log lines."""
    return f"{key[:5]}..." if key else 'missing'
