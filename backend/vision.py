"""
Google Cloud Vision integration.
Annotates an uploaded image and maps what it sees to activity types and
event details (dates, times, name, location).
"""

import base64
import logging
import re

import requests

import config
from errors import MissingApiKeyError, ProviderError

logger = logging.getLogger(__name__)

FEATURES = [
    {"type": "LANDMARK_DETECTION"},
    {"type": "LABEL_DETECTION", "maxResults": 10},
    {"type": "LOGO_DETECTION"},
    {"type": "TEXT_DETECTION"},
    {"type": "IMAGE_PROPERTIES"},
]

LEISURE_KEYWORDS = {
    'outdoor': ['park', 'nature', 'mountain', 'beach', 'hiking', 'trail', 'forest', 'garden', 'outdoor'],
    'indoor': ['museum', 'gallery', 'mall', 'theater', 'cinema', 'restaurant', 'cafe', 'library'],
    'cultural': ['museum', 'art', 'gallery', 'theater', 'performance', 'concert', 'festival', 'historic'],
    'entertainment': ['concert', 'theater', 'cinema', 'show', 'performance', 'amusement', 'fair', 'festival'],
    'culinary': ['restaurant', 'cafe', 'food', 'dining', 'cuisine', 'bakery', 'brewery', 'winery'],
    'sports': ['stadium', 'arena', 'court', 'field', 'gym', 'fitness', 'sport', 'game', 'athletic'],
    'educational': ['museum', 'gallery', 'exhibition', 'library', 'science', 'educational', 'workshop', 'learning'],
    'nightlife': ['bar', 'pub', 'club', 'lounge', 'nightclub', 'disco', 'nightlife'],
    'wellness': ['spa', 'yoga', 'meditation', 'wellness', 'retreat', 'relaxation', 'massage', 'health'],
}

DATE_RE = re.compile(
    r"\b(\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}|\w+ \d{1,2}(?:st|nd|rd|th)?,? \d{4}|\d{1,2} \w+ \d{4})\b"
)
TIME_RE = re.compile(
    r"\b(\d{1,2}(?::\d{2})?\s*(?:am|pm|AM|PM)(?:\s*-\s*\d{1,2}(?::\d{2})?\s*(?:am|pm|AM|PM))?)\b"
)

QUOTED_EVENT_PATTERNS = [
    re.compile(r'join us for "(.*?)"', re.I),
    re.compile(r'presenting "(.*?)"', re.I),
    re.compile(r'welcome to "(.*?)"', re.I),
    re.compile(r'introducing "(.*?)"', re.I),
]
EVENT_KEYWORD_RE = re.compile(
    r"\b(?:festival|concert|exhibition|show|fair|expo|conference|workshop)\b[:\s-]+(.*?)(?:\.|,|\n|$)",
    re.I,
)
CAPITALIZED_PHRASE_RE = re.compile(r"\b([A-Z][A-Za-z]*(?:\s+[A-Z][A-Za-z]*)+)\b")
CALENDAR_WORDS_RE = re.compile(
    r"Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday|January|February|March|April"
    r"|May|June|July|August|September|October|November|December"
)
LOCATION_PATTERNS = [
    re.compile(r"\bat\s+(.*?)(?:\.|,|\n|$)", re.I),
    re.compile(r"\blocation:\s+(.*?)(?:\.|,|\n|$)", re.I),
    re.compile(r"\bvenue:\s+(.*?)(?:\.|,|\n|$)", re.I),
    re.compile(r"\bheld at\s+(.*?)(?:\.|,|\n|$)", re.I),
    re.compile(r"\baddress:\s+(.*?)(?:\.|,|\n|$)", re.I),
]


def annotate_image(content):
    """Run the Vision feature set over raw image bytes and return the first response."""
    if not config.GOOGLE_CLOUD_API_KEY:
        raise MissingApiKeyError("Google Cloud Vision")

    body = {
        "requests": [{
            "image": {"content": base64.b64encode(content).decode('ascii')},
            "features": FEATURES,
        }]
    }
    try:
        response = requests.post(
            config.VISION_API_URL,
            params={"key": config.GOOGLE_CLOUD_API_KEY},
            json=body,
            timeout=30,
        )
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        raise ProviderError("Error contacting Vision API", error=str(e))

    if not response.ok:
        raise ProviderError("Vision API error", error=data.get('error', {}).get('message'))

    result = (data.get('responses') or [{}])[0]
    if result.get('error'):
        raise ProviderError("Vision API error", error=result['error'].get('message'))
    return result


def _scored(annotations):
    return [{"description": a.get('description'), "score": a.get('score')} for a in annotations]


def detect_activity_types(labels):
    """Activity types suggested by image labels, strongest first."""
    scores = {}
    for label in labels:
        text = (label.get('description') or '').lower()
        for activity_type, keywords in LEISURE_KEYWORDS.items():
            if any(keyword in text for keyword in keywords):
                scores[activity_type] = scores.get(activity_type, 0) + (label.get('score') or 0)
    return [t for t, _ in sorted(scores.items(), key=lambda item: item[1], reverse=True)]


def extract_event_name(text):
    for pattern in QUOTED_EVENT_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1).strip()

    match = EVENT_KEYWORD_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    phrases = [p for p in CAPITALIZED_PHRASE_RE.findall(text) if not CALENDAR_WORDS_RE.search(p)]
    return phrases[0] if phrases else None


def extract_location(text, landmarks=None):
    if landmarks and landmarks[0].get('description'):
        return landmarks[0]['description']
    for pattern in LOCATION_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1).strip()
    return None


def extract_event_info(text, landmarks=None):
    """Dates, times, name and location found in poster text, or None."""
    if not text:
        return None
    dates = [m.group(0) for m in DATE_RE.finditer(text)]
    times = [m.group(0) for m in TIME_RE.finditer(text)]
    if not dates and not times:
        return None
    return {
        "dates": dates,
        "times": times,
        "potentialEventName": extract_event_name(text),
        "potentialLocation": extract_location(text, landmarks),
    }


def analyze_image(content):
    result = annotate_image(content)

    landmarks = result.get('landmarkAnnotations') or []
    labels = result.get('labelAnnotations') or []
    logos = result.get('logoAnnotations') or []
    text_annotations = result.get('textAnnotations') or []
    text = text_annotations[0].get('description', '') if text_annotations else ''

    activity_types = detect_activity_types(labels)
    event_info = extract_event_info(text, landmarks)
    logger.info("Image analysis: %d labels, %d landmarks, types=%s", len(labels), len(landmarks), activity_types)

    suggested_search = None
    if activity_types:
        location = (event_info or {}).get('potentialLocation') or ''
        suggested_search = f"{activity_types[0]} activities {location}".strip()

    return {
        "labels": _scored(labels),
        "landmarks": _scored(landmarks),
        "logos": _scored(logos),
        "text": text,
        "detectedActivityTypes": activity_types,
        "eventInfo": event_info,
        "suggestedSearch": suggested_search,
    }
