"""
Google Places integration.
Nearby search, place details, autocomplete, and the nearby-activity
aggregator that turns Places results into leisure activities.
"""

import logging
from datetime import datetime, timedelta

import requests

import config
from errors import MissingApiKeyError, ProviderError, ServiceError

logger = logging.getLogger(__name__)

# Activity type -> Google Places types, searched in order
TYPE_TO_PLACES_TYPES = {
    'outdoor': ['park', 'campground', 'natural_feature', 'zoo'],
    'indoor': ['shopping_mall', 'museum', 'movie_theater', 'bowling_alley', 'library', 'aquarium'],
    'cultural': ['museum', 'art_gallery', 'tourist_attraction'],
    'entertainment': ['amusement_park', 'movie_theater', 'casino', 'stadium', 'bowling_alley'],
    'culinary': ['restaurant', 'cafe', 'bakery', 'bar'],
    'sports': ['stadium', 'gym', 'sports_complex', 'bowling_alley'],
    'educational': ['museum', 'library', 'university', 'school', 'aquarium', 'zoo'],
    'nightlife': ['night_club', 'bar', 'casino'],
    'wellness': ['spa', 'gym', 'beauty_salon', 'health', 'yoga'],
    'other': ['point_of_interest', 'establishment'],
}

# Estimated cost in USD per activity type, indexed by Google price_level (0-4)
PRICE_ESTIMATES = {
    'outdoor': [0, 5, 15, 30, 60],
    'indoor': [0, 10, 25, 45, 80],
    'cultural': [0, 15, 30, 50, 100],
    'entertainment': [0, 20, 45, 80, 150],
    'sports': [0, 15, 40, 75, 120],
    'culinary': [0, 15, 35, 75, 150],
    'educational': [0, 12, 25, 40, 80],
    'nightlife': [0, 25, 50, 100, 200],
    'wellness': [0, 30, 60, 100, 180],
    'other': [0, 15, 30, 60, 100],
}

# Place types that are usually free even when Google reports a price level
USUALLY_FREE_PLACE_TYPES = {'park', 'library', 'university', 'natural_feature'}

# Google place types -> activity types, used to classify raw places
PLACE_TYPE_TO_ACTIVITY = {
    'outdoor': ['park', 'campground', 'natural_feature', 'rv_park', 'zoo', 'aquarium', 'hiking_area'],
    'indoor': ['shopping_mall', 'library', 'movie_theater', 'bowling_alley', 'spa', 'gym'],
    'cultural': ['museum', 'art_gallery', 'tourist_attraction', 'church', 'hindu_temple', 'mosque', 'synagogue'],
    'entertainment': ['amusement_park', 'movie_theater', 'night_club', 'casino', 'bowling_alley', 'stadium'],
    'culinary': ['restaurant', 'cafe', 'bakery', 'bar', 'food', 'meal_takeaway', 'meal_delivery'],
    'sports': ['stadium', 'bowling_alley', 'gym', 'sports_complex', 'swimming_pool'],
    'educational': ['museum', 'library', 'university', 'school', 'book_store'],
    'nightlife': ['bar', 'night_club', 'casino'],
    'wellness': ['spa', 'gym', 'health', 'beauty_salon', 'hair_care'],
}

DETAIL_FIELDS = (
    'name,formatted_address,geometry,formatted_phone_number,website,opening_hours,'
    'price_level,rating,user_ratings_total,reviews,photos,editorial_summary,url,types'
)

PLACEHOLDER_IMAGE = '/placeholder-image.jpg'

# Place details, kept for the life of the process
place_details_cache = {}


def _require_key():
    if not config.GOOGLE_PLACES_API_KEY:
        logger.error("No Google Places API key available")
        raise MissingApiKeyError("Google Places")
    return config.GOOGLE_PLACES_API_KEY


def _get(endpoint, params):
    """GET a Places web-service endpoint and return the decoded JSON body."""
    params = dict(params, key=_require_key())
    url = f"{config.GOOGLE_PLACES_BASE_URL}/{endpoint}/json"
    try:
        response = requests.get(url, params=params, timeout=config.REQUEST_TIMEOUT_SECONDS)
        return response.json()
    except (requests.RequestException, ValueError) as e:
        raise ProviderError("Error contacting Google Places API", error=str(e))


def _check_status(data, allow_zero=True):
    status = data.get('status')
    if status == 'OK' or (allow_zero and status == 'ZERO_RESULTS'):
        return
    raise ProviderError(
        f"Google Places API error: {status}",
        error=data.get('error_message'),
    )


def photo_url(photo_reference, max_width=400):
    return (
        f"{config.GOOGLE_PLACES_BASE_URL}/photo?maxwidth={max_width}"
        f"&photo_reference={photo_reference}&key={config.GOOGLE_PLACES_API_KEY}"
    )


def nearby_search(location, radius, place_type=None, keyword=None,
                  min_price=None, max_price=None, open_now=False):
    """Run one Nearby Search call. Returns (results, next_page_token)."""
    params = {
        'location': f"{location['lat']},{location['lng']}",
        'radius': radius,
    }
    if place_type:
        params['type'] = place_type
    if keyword:
        params['keyword'] = keyword
    if min_price is not None:
        params['minprice'] = min_price
    if max_price is not None:
        params['maxprice'] = max_price
    if open_now:
        params['opennow'] = 'true'

    logger.info("Nearby search type=%s near %s radius=%sm", place_type, params['location'], radius)
    data = _get('nearbysearch', params)
    _check_status(data)
    results = data.get('results', [])
    logger.info("Found %d %s places", len(results), place_type or 'any')
    return results, data.get('next_page_token')


def get_place_details(place_id):
    """Fetch details for a place; photos gain a ready-to-use `url`."""
    if place_id in place_details_cache:
        logger.debug("Details cache hit for %s", place_id)
        return place_details_cache[place_id]

    data = _get('details', {'place_id': place_id, 'fields': DETAIL_FIELDS})
    # Google answers INVALID_REQUEST for malformed ids
    if data.get('status') in ('NOT_FOUND', 'INVALID_REQUEST'):
        return None
    _check_status(data, allow_zero=False)

    details = data.get('result', {})
    details['photos'] = [
        dict(photo, url=photo_url(photo.get('photo_reference'), max_width=800))
        for photo in details.get('photos', [])
    ]
    place_details_cache[place_id] = details
    return details


def autocomplete(text, location=None, radius=None):
    params = {'input': text}
    if location:
        params['location'] = f"{location['lat']},{location['lng']}"
        params['radius'] = radius or config.DEFAULT_RADIUS_METERS
    data = _get('autocomplete', params)
    _check_status(data)
    return [
        {
            'description': p.get('description', ''),
            'placeId': p.get('place_id'),
            'types': p.get('types', []),
        }
        for p in data.get('predictions', [])
    ]


def find_place_id(name, address=None):
    """Look up a place ID by name (and address). Returns None when nothing matches."""
    query = f"{name} {address}" if address else name
    try:
        data = _get('textsearch', {'query': query})
        _check_status(data)
    except ServiceError as e:
        logger.error("Error finding place ID for %r: %s", query, e)
        return None
    results = data.get('results', [])
    if not results:
        logger.warning("No places found for: %s", query)
        return None
    return results[0].get('place_id')


def get_google_rating(name, address=None):
    """Rating information for an activity matched by name and address."""
    result = {'rating': None, 'totalRatings': None, 'placeId': None}
    place_id = find_place_id(name, address)
    if not place_id:
        return result
    result['placeId'] = place_id
    try:
        details = get_place_details(place_id)
    except ServiceError as e:
        logger.error("Error fetching Google rating for %s: %s", place_id, e)
        return result
    if details:
        result['rating'] = details.get('rating')
        result['totalRatings'] = details.get('user_ratings_total')
    return result


def estimate_price(activity_type, place_type, price_level=None, business_status=None):
    """Estimate (is_free, cost) for a place.

    Uses Google's price_level when present, otherwise a per-type guess.
    """
    if price_level is not None:
        prices = PRICE_ESTIMATES.get(activity_type, PRICE_ESTIMATES['other'])
        level = max(0, min(int(price_level), len(prices) - 1))
        is_free = level == 0
        cost = prices[level]
        if place_type in USUALLY_FREE_PLACE_TYPES:
            is_free = level <= 1
            if is_free:
                cost = 0
        return is_free, cost

    if activity_type == 'outdoor':
        is_free = place_type in ('park', 'natural_feature', 'campground')
        return is_free, 0 if is_free else 15
    if activity_type == 'cultural':
        return False, 25
    if activity_type == 'culinary':
        return False, 30
    if activity_type == 'nightlife':
        return False, 50
    if activity_type == 'indoor':
        is_free = place_type == 'library'
        return is_free, 0 if is_free else 20
    is_free = business_status == 'CLOSED_PERMANENTLY'
    return is_free, 0 if is_free else 25


def _default_schedule():
    now = datetime.now()
    return {
        'startDate': now.isoformat(),
        'endDate': (now + timedelta(days=365)).isoformat(),
        'recurring': True,
        'recurrencePattern': 'Hours vary by day',
    }


def place_to_activity(place, activity_type, place_type, center):
    """Convert a Nearby Search result into an activity record."""
    photos = place.get('photos') or []
    image = PLACEHOLDER_IMAGE
    if photos and photos[0].get('photo_reference') and config.GOOGLE_PLACES_API_KEY:
        image = photo_url(photos[0]['photo_reference'])

    is_free, cost = estimate_price(
        activity_type, place_type, place.get('price_level'), place.get('business_status'),
    )
    location = (place.get('geometry') or {}).get('location') or {}
    vicinity = place.get('vicinity') or ''

    # Unique tags, order preserved
    tags = list(dict.fromkeys(list(place.get('types') or []) + [activity_type]))

    return {
        'id': place['place_id'],
        'title': place.get('name', ''),
        'description': vicinity or f"A {activity_type} activity nearby.",
        'type': activity_type,
        'location': {
            'address': vicinity,
            'coordinates': {
                'lat': location.get('lat', center['lat']),
                'lng': location.get('lng', center['lng']),
            },
        },
        'schedule': _default_schedule(),
        'price': {'isFree': is_free, 'cost': cost, 'currency': 'USD'},
        'contactInfo': {'phone': '', 'website': ''},
        'images': [image],
        'rating': place.get('rating') or 0,
        'tags': tags,
    }


def details_to_activity(place_id, details):
    """Convert a Place Details result into an activity record."""
    types = extract_activity_types(details)
    activity_type = types[0] if types else 'other'
    place_type = (details.get('types') or [None])[0]
    price_level = details.get('price_level')
    is_free, cost = estimate_price(activity_type, place_type, price_level)
    location = (details.get('geometry') or {}).get('location') or config.DEFAULT_CENTER
    summary = (details.get('editorial_summary') or {}).get('overview')
    weekday_text = (details.get('opening_hours') or {}).get('weekday_text') or []

    schedule = _default_schedule()
    if weekday_text:
        schedule['recurrencePattern'] = '; '.join(weekday_text)

    return {
        'id': place_id,
        'title': details.get('name', ''),
        'description': summary or details.get('formatted_address', ''),
        'type': activity_type,
        'location': {
            'address': details.get('formatted_address', ''),
            'coordinates': {'lat': location.get('lat'), 'lng': location.get('lng')},
        },
        'schedule': schedule,
        'price': {'isFree': is_free, 'cost': cost, 'currency': 'USD', 'level': price_level},
        'contactInfo': {
            'phone': details.get('formatted_phone_number', ''),
            'website': details.get('website') or details.get('url', ''),
        },
        'images': [p['url'] for p in details.get('photos', []) if p.get('url')] or [PLACEHOLDER_IMAGE],
        'rating': details.get('rating') or 0,
        'tags': [t for t in details.get('types', []) if t not in ('establishment', 'point_of_interest')],
    }


def extract_activity_types(place):
    """Activity types implied by a raw place's Google `types`."""
    place_types = place.get('types') or []
    found = []
    for activity_type, mapped in PLACE_TYPE_TO_ACTIVITY.items():
        if any(t in mapped for t in place_types):
            found.append(activity_type)
    return found


def search_activities(activity_types=None, center=None, radius=None, query=''):
    """Collect up to RESULTS_PER_TYPE activities per requested activity type.

    Each type's Places categories are searched in order until the type has
    enough results. Places already returned for an earlier category are
    skipped. A failing category is logged and the loop moves on.
    """
    _require_key()
    activity_types = activity_types or list(TYPE_TO_PLACES_TYPES)
    center = center or config.DEFAULT_CENTER
    radius = radius or config.DEFAULT_RADIUS_METERS
    limit = config.RESULTS_PER_TYPE

    logger.info("Searching activities for types: %s", ', '.join(activity_types))
    logger.info("Location: %s, %s with radius %sm", center['lat'], center['lng'], radius)

    activities = []
    seen_place_ids = set()
    counts = {}

    for activity_type in activity_types:
        place_types = TYPE_TO_PLACES_TYPES.get(activity_type, ['point_of_interest'])
        for place_type in place_types:
            if counts.get(activity_type, 0) >= limit:
                break
            try:
                results, _ = nearby_search(center, radius, place_type=place_type, keyword=query or None)
            except ProviderError as e:
                logger.warning("Error searching for %s places: %s", place_type, e.message)
                continue

            for place in results:
                place_id = place.get('place_id')
                if not place_id or place_id in seen_place_ids:
                    continue
                seen_place_ids.add(place_id)
                activities.append(place_to_activity(place, activity_type, place_type, center))
                counts[activity_type] = counts.get(activity_type, 0) + 1
                if counts[activity_type] >= limit:
                    break

    logger.info("Returning %d activities", len(activities))
    return activities
