"""
Leisure Finder Backend API
Activity discovery over Google Places, with Groq, Vision, Speech and Calendar glue.
"""

import json
import logging
from datetime import datetime

from flask import Flask, request, jsonify, session
from flask_cors import CORS

import calendar_service
import config
import db
import firestore_db
import groq_service
import mock_data
import places
import recommendations
import speech
import vision
from errors import MissingApiKeyError, NotFoundError, ServiceError, ValidationError

config.setup_logging()
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = config.SECRET_KEY
# CORS: credentials are needed for the calendar session cookie
_cors_origins = ['http://localhost:3000', 'http://localhost:8000']
if config.FRONTEND_URL:
    _cors_origins.append(config.FRONTEND_URL)
CORS(app, supports_credentials=True, origins=_cors_origins)

# Firestore when configured, local SQLite otherwise
store = firestore_db if firestore_db.is_configured() else db
store.init_db()
logger.info("Using %s store", 'Firestore' if store is firestore_db else 'SQLite')


def default_preferences():
    return {'favoriteTypes': [], 'favoriteTags': [], 'savedActivities': []}


def _now():
    return datetime.now().isoformat()


def _float_arg(name):
    value = request.args.get(name)
    if value in (None, ''):
        return None
    try:
        return float(value)
    except ValueError:
        raise ValidationError(f"Invalid value for {name}: {value}")


def _int_arg(name, default):
    value = request.args.get(name)
    if value in (None, ''):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"Invalid value for {name}: {value}")


def _location_args():
    lat, lng = _float_arg('lat'), _float_arg('lng')
    if lat is None or lng is None:
        return None
    return {'lat': lat, 'lng': lng}


def _json_body():
    return request.get_json(silent=True) or {}


@app.errorhandler(ServiceError)
def handle_service_error(error):
    return jsonify(error.to_dict()), error.status_code


# ---------- Activities ----------

@app.route('/api/activities', methods=['GET'])
def list_activities():
    """Activities near a point, up to five per requested type."""
    types = [t for t in request.args.getlist('type') if t]
    query = request.args.get('query', '')
    center = _location_args()
    radius = _int_arg('radius', config.DEFAULT_RADIUS_METERS)

    try:
        activities = places.search_activities(types or None, center, radius, query)
    except MissingApiKeyError as e:
        return jsonify(dict(e.to_dict(), data=[])), e.status_code
    except Exception as e:
        logger.exception("Error in activities API")
        fallback = mock_data.filter_activities({'types': types, 'query': query})
        if not fallback:
            fallback = mock_data.filter_activities({})
        return jsonify({
            "success": True,
            "message": "Error fetching activities from Google Places API, using fallback data",
            "error": str(e),
            "data": fallback,
            "count": len(fallback),
            "source": "fallback",
        })

    return jsonify({"success": True, "count": len(activities), "data": activities})


@app.route('/api/activities/<activity_id>', methods=['GET'])
def get_activity(activity_id):
    activity = mock_data.get_activity_by_id(activity_id)
    if activity:
        return jsonify({"success": True, "data": activity, "source": "mock"})

    details = places.get_place_details(activity_id)
    if not details:
        raise NotFoundError("Activity not found")
    return jsonify({
        "success": True,
        "data": places.details_to_activity(activity_id, details),
        "source": "google",
    })


# ---------- Places ----------

@app.route('/api/places', methods=['GET'])
def place_details():
    place_id = request.args.get('placeId')
    user_id = request.args.get('userId')
    if not place_id:
        raise ValidationError("Place ID is required")

    details = places.get_place_details(place_id)
    if not details:
        raise NotFoundError("Place not found")

    if user_id:
        store.log_history('placeHistory', {
            'userId': user_id,
            'placeId': place_id,
            'placeName': details.get('name'),
            'timestamp': _now(),
            'location': (details.get('geometry') or {}).get('location'),
        })
    return jsonify({"success": True, "data": details})


@app.route('/api/places', methods=['POST'])
def search_places():
    data = _json_body()
    location = data.get('location') or {}
    if location.get('lat') is None or location.get('lng') is None:
        raise ValidationError("Location is required with lat and lng")

    search_params = {
        'location': location,
        'type': data.get('type'),
        'radius': data.get('radius') or 5000,
        'keyword': data.get('keyword'),
        'minPrice': data.get('minPrice'),
        'maxPrice': data.get('maxPrice'),
        'openNow': bool(data.get('openNow')),
    }
    results, next_page_token = places.nearby_search(
        location,
        search_params['radius'],
        place_type=search_params['type'],
        keyword=search_params['keyword'],
        min_price=search_params['minPrice'],
        max_price=search_params['maxPrice'],
        open_now=search_params['openNow'],
    )
    for place in results:
        place['photos'] = [
            dict(photo, url=places.photo_url(photo.get('photo_reference')))
            for photo in place.get('photos', [])
        ]

    if data.get('userId'):
        store.log_history('searchHistory', {
            'userId': data['userId'],
            'searchParams': search_params,
            'timestamp': _now(),
            'resultCount': len(results),
        })

    return jsonify({
        "success": True,
        "data": results,
        "nextPageToken": next_page_token,
        "count": len(results),
    })


@app.route('/api/places/autocomplete', methods=['GET'])
def places_autocomplete():
    text = request.args.get('input', '').strip()
    if not text:
        raise ValidationError("Input is required")
    predictions = places.autocomplete(text, _location_args())
    return jsonify({"success": True, "data": predictions, "count": len(predictions)})


@app.route('/api/places/rating', methods=['GET'])
def place_rating():
    """Google rating for an activity matched by name and address."""
    name = request.args.get('name', '').strip()
    if not name:
        raise ValidationError("Name is required")
    rating = places.get_google_rating(name, request.args.get('address'))
    return jsonify({"success": True, "data": rating})


@app.route('/api/recommendations', methods=['GET'])
def get_recommendations():
    user_id = request.args.get('userId')
    if not user_id:
        raise ValidationError("User ID is required")
    result = recommendations.get_recommendations(
        store, user_id, _location_args(), limit=_int_arg('limit', 10)
    )
    return jsonify(dict(result, success=True))


# ---------- AI ----------

@app.route('/api/groq', methods=['POST'])
def groq_place_info():
    data = _json_body()
    if not data.get('placeName'):
        return jsonify({"success": False, "error": "Missing required field: placeName"}), 400
    try:
        info = groq_service.generate_place_info(data['placeName'], data.get('address'), data.get('description'))
    except MissingApiKeyError:
        logger.error("GROQ_API_KEY is missing in environment variables")
        return jsonify({"success": False, "error": "Groq API key not configured"}), 500
    return jsonify({"enhancedInfo": info, "isAIGenerated": True})


@app.route('/api/search/natural', methods=['POST'])
def natural_language_search():
    data = _json_body()
    filters = groq_service.process_natural_language_query(data.get('query', ''), data.get('location'))
    return jsonify({"success": True, "filters": filters})


@app.route('/api/ai/enhance', methods=['POST'])
def enhance_description():
    data = _json_body()
    if not data.get('description'):
        raise ValidationError("Description is required")
    enhanced = groq_service.enhance_activity_description(data['description'], data.get('type', 'other'))
    return jsonify({"success": True, "description": enhanced})


@app.route('/api/ai/summary', methods=['POST'])
def activity_summary():
    data = _json_body()
    if not data.get('title'):
        raise ValidationError("Title is required")
    summary = groq_service.get_web_search_summary(data['title'], data.get('type', 'other'), data.get('location'))
    return jsonify({"success": True, "summary": summary})


@app.route('/api/ai/rank', methods=['POST'])
def rank_activities():
    data = _json_body()
    activities = data.get('activities') or []
    ranked = groq_service.rank_activities(activities, data.get('preferences') or default_preferences())
    return jsonify({"success": True, "data": ranked, "count": len(ranked)})


@app.route('/api/ai/image', methods=['POST'])
def ai_image_content():
    data = _json_body()
    if not data.get('image'):
        raise ValidationError("Image is required")
    return jsonify(dict(groq_service.process_image_content(data['image']), success=True))


# ---------- Vision & Speech ----------

@app.route('/api/vision', methods=['POST'])
def analyze_image():
    image = request.files.get('image')
    if image is None:
        raise ValidationError("No image file provided")
    user_id = request.form.get('userId')

    analysis = vision.analyze_image(image.read())
    if user_id:
        store.log_history('imageAnalysis', {
            'userId': user_id,
            'timestamp': _now(),
            'labels': analysis['labels'],
            'landmarks': analysis['landmarks'],
            'detectedActivityTypes': analysis['detectedActivityTypes'],
            'eventInfo': analysis['eventInfo'],
        })
    return jsonify(dict(analysis, success=True))


@app.route('/api/speech', methods=['POST'])
def transcribe_audio():
    audio = request.files.get('audio')
    if audio is None:
        raise ValidationError("No audio file provided")
    user_id = request.form.get('userId')

    transcription = speech.transcribe(audio.read())
    if user_id:
        store.log_history('voiceSearches', {
            'userId': user_id,
            'timestamp': _now(),
            'transcription': transcription,
            'detectedText': transcription,
        })
    return jsonify({"success": True, "transcription": transcription})


# ---------- Calendar ----------

def _oauth_popup(message):
    """Popup page that hands the OAuth outcome back to the opener window."""
    return f'''
    <html><body>
    <script>
        window.opener && window.opener.postMessage({json.dumps(message)}, '*');
        window.close();
    </script>
    </body></html>
    '''


def _calendar_auth_url(scope):
    return calendar_service.build_auth_url([scope], calendar_service.sign_state(app.secret_key))


def _authorization_required(scope):
    return jsonify({
        "success": False,
        "message": "Authorization required",
        "authUrl": _calendar_auth_url(scope),
    }), 403


@app.route('/api/calendar/auth-url', methods=['GET'])
def calendar_auth_url():
    if not config.GOOGLE_CLIENT_ID:
        return jsonify({"success": False, "message": "Google OAuth not configured"}), 501
    scope = calendar_service.CALENDAR_READONLY_SCOPE if request.args.get('readonly') else calendar_service.CALENDAR_SCOPE
    return jsonify({"success": True, "url": _calendar_auth_url(scope), "configured": True})


@app.route('/api/calendar/callback', methods=['GET'])
def calendar_callback():
    error = request.args.get('error')
    if error:
        return _oauth_popup({'type': 'oauth_error', 'error': error})
    if not calendar_service.verify_state(app.secret_key, request.args.get('state')):
        return _oauth_popup({'type': 'oauth_error', 'error': 'Invalid state token'})

    try:
        tokens = calendar_service.exchange_code(request.args.get('code'))
        email = calendar_service.get_user_email(tokens.get('access_token'))
    except ServiceError as e:
        logger.error("Calendar OAuth failed: %s", e.error or e.message)
        return _oauth_popup({'type': 'oauth_error', 'error': e.error or e.message})

    session['calendar_token'] = tokens.get('access_token')
    session['user_email'] = email
    logger.info("Calendar auth successful for: %s", email)
    return _oauth_popup({'type': 'calendar_success', 'email': email})


@app.route('/api/calendar', methods=['POST'])
def add_calendar_event():
    email = session.get('user_email')
    if not email:
        return jsonify({"success": False, "message": "Authentication required"}), 401
    token = session.get('calendar_token')
    if not token:
        return _authorization_required(calendar_service.CALENDAR_SCOPE)

    data = _json_body()
    if not data.get('title') or not data.get('startDateTime'):
        raise ValidationError("Title and start date/time are required")

    event = calendar_service.build_event(
        data['title'],
        data['startDateTime'],
        data.get('endDateTime'),
        data.get('description'),
        data.get('location'),
    )
    created = calendar_service.insert_event(token, event)

    store.add_calendar_event(email, {
        'id': created.get('id'),
        'title': data['title'],
        'startDateTime': data['startDateTime'],
        'endDateTime': event['end']['dateTime'],
        'createdAt': _now(),
    })
    return jsonify({"success": True, "event": created, "htmlLink": created.get('htmlLink')})


@app.route('/api/calendar', methods=['GET'])
def list_calendar_events():
    if not session.get('user_email'):
        return jsonify({"success": False, "message": "Authentication required"}), 401
    token = session.get('calendar_token')
    if not token:
        return _authorization_required(calendar_service.CALENDAR_READONLY_SCOPE)

    events = calendar_service.list_upcoming_events(token)
    return jsonify({"success": True, "events": events})


# ---------- Preferences & saved activities ----------

@app.route('/api/preferences/<user_id>', methods=['GET'])
def get_preferences(user_id):
    prefs = store.get_preferences(user_id)
    return jsonify({"success": True, "data": dict(default_preferences(), **(prefs or {}))})


@app.route('/api/preferences/<user_id>', methods=['PUT'])
def update_preferences(user_id):
    prefs = request.get_json(silent=True)
    if not isinstance(prefs, dict):
        raise ValidationError("Preferences must be a JSON object")
    store.set_preferences(user_id, prefs)
    return jsonify({"success": True, "data": prefs})


@app.route('/api/saved/<user_id>', methods=['GET'])
def get_saved(user_id):
    ids = store.get_saved_activities(user_id)
    activities = [a for a in (mock_data.get_activity_by_id(i) for i in ids) if a]
    return jsonify({"success": True, "ids": ids, "data": activities, "count": len(activities)})


@app.route('/api/saved/<user_id>', methods=['POST'])
def save_activity(user_id):
    activity_id = _json_body().get('activityId')
    if not activity_id:
        raise ValidationError("Activity ID is required")
    saved = store.add_saved_activity(user_id, str(activity_id))
    return jsonify({"success": True, "ids": saved})


@app.route('/api/saved/<user_id>/<activity_id>', methods=['DELETE'])
def unsave_activity(user_id, activity_id):
    saved = store.remove_saved_activity(user_id, activity_id)
    return jsonify({"success": True, "ids": saved})


# ---------- Status ----------

@app.route('/api/status', methods=['GET'])
def api_status():
    return jsonify({
        "status": "ok",
        "service": "leisure-finder-api",
        "timestamp": _now(),
        "store": 'firestore' if store is firestore_db else 'sqlite',
        "features": {
            "google_places": bool(config.GOOGLE_PLACES_API_KEY),
            "groq": bool(config.GROQ_API_KEY),
            "vision": bool(config.GOOGLE_CLOUD_API_KEY),
            "speech": bool(config.GOOGLE_CLOUD_API_KEY),
            "calendar": bool(config.GOOGLE_CLIENT_ID and config.GOOGLE_CLIENT_SECRET),
        },
    })


@app.route('/health', methods=['GET'])
def health_check():
    return jsonify({"status": "ok", "service": "leisure-finder-api"})


if __name__ == '__main__':
    logger.info("Leisure Finder API starting on http://localhost:5001")
    logger.info("Google Places key: %s", config.key_prefix(config.GOOGLE_PLACES_API_KEY))
    app.run(debug=True, port=5001, host='0.0.0.0')
