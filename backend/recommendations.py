"""
Personalized recommendations.
Combines a user's favorite types with what they search for most, then
pulls nearby places for the top types in parallel.
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import config
import places
from errors import NotFoundError, ProviderError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TYPES = ['tourist_attraction', 'restaurant', 'museum']
TYPES_TO_FETCH = 3


def build_recommendation_types(favorite_types, search_history):
    """Favorites first, then the three most searched place types.

    Returns the merged type list and every searched type, most searched first.
    """
    searched = Counter(
        (record.get('searchParams') or {}).get('type')
        for record in search_history
    )
    searched.pop(None, None)
    searched_types = [t for t, _ in searched.most_common()]

    types = []
    for t in list(favorite_types or []) + searched_types[:3]:
        if t and t not in types:
            types.append(t)
    return types or list(DEFAULT_TYPES), searched_types


def _resolve_location(store, user_id, location):
    if location:
        return location
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    saved = (user.get('preferences') or {}).get('location')
    if not saved:
        raise ValidationError("User location not available")
    return saved


def _fetch_type(place_type, location, viewed, favorite_types, searched_types):
    try:
        results, _ = places.nearby_search(location, config.DEFAULT_RADIUS_METERS, place_type=place_type)
    except ProviderError as e:
        logger.warning("Recommendation search for %s failed: %s", place_type, e.message)
        return []

    reasons = []
    if place_type in favorite_types:
        reasons.append('matches your preferred activities')
    if place_type in searched_types:
        reasons.append('based on your search history')

    fresh = [p for p in results if p.get('place_id') not in viewed]
    return [
        dict(place, activityTypes=places.extract_activity_types(place), recommendedBecause=reasons)
        for place in fresh[:config.RESULTS_PER_TYPE]
    ]


def get_recommendations(store, user_id, location=None, limit=10):
    location = _resolve_location(store, user_id, location)
    places._require_key()

    prefs = store.get_preferences(user_id) or {}
    favorite_types = prefs.get('favoriteTypes') or []
    viewed = {r.get('placeId') for r in store.get_history('placeHistory', user_id)}
    base_types, searched_types = build_recommendation_types(
        favorite_types, store.get_history('searchHistory', user_id)
    )

    to_fetch = base_types[:TYPES_TO_FETCH]
    with ThreadPoolExecutor(max_workers=len(to_fetch)) as pool:
        batches = list(pool.map(
            lambda t: _fetch_type(t, location, viewed, favorite_types, searched_types),
            to_fetch,
        ))

    seen = set()
    recommendations = []
    for place in (p for batch in batches for p in batch):
        if place.get('place_id') in seen:
            continue
        seen.add(place.get('place_id'))
        recommendations.append(place)
    recommendations = recommendations[:limit]

    store.log_history('recommendationHistory', {
        'userId': user_id,
        'timestamp': datetime.now().isoformat(),
        'location': location,
        'baseTypes': base_types,
        'resultCount': len(recommendations),
    })
    logger.info("Returning %d recommendations for %s", len(recommendations), user_id)
    return {'data': recommendations, 'count': len(recommendations), 'baseTypes': base_types}
