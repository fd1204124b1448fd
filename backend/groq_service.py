"""
Groq LLM integration.
Natural-language filter extraction, description enhancement, ranking,
summaries and place write-ups. Every helper degrades to a fixed default
when the API key is missing or the model answer can't be used.
"""

import json
import logging
import math
import re

import requests

import config
from errors import MissingApiKeyError, ProviderError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def default_filters():
    return {
        "types": [],
        "priceRange": {"min": 0, "max": 1000},
        "tags": [],
    }


def call_groq(messages, model=None, **options):
    """POST a chat completion and return the decoded response body."""
    if not config.GROQ_API_KEY:
        raise MissingApiKeyError("Groq")

    payload = {
        "model": model or config.GROQ_MODEL,
        "messages": messages,
        "max_tokens": 250,
        "temperature": 0.7,
    }
    payload.update(options)

    try:
        response = requests.post(
            config.GROQ_API_URL,
            headers={
                "Authorization": f"Bearer {config.GROQ_API_KEY}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=30,
        )
    except requests.RequestException as e:
        raise ProviderError("Error contacting Groq API", error=str(e))

    if not response.ok:
        raise ProviderError("Groq API error", error=response.text)
    try:
        return response.json()
    except ValueError as e:
        raise ProviderError("Invalid response from Groq API", error=str(e))


def _message_content(response, default=''):
    try:
        return response["choices"][0]["message"]["content"] or default
    except (KeyError, IndexError, TypeError):
        return default


def _strip_fences(text):
    match = _FENCE_RE.search(text)
    return match.group(1).strip() if match else text


def extract_json_object(text):
    """Pull the outermost JSON object out of an LLM answer.

    Handles markdown code fences and chatter before or after the object.
    Raises ValueError when nothing parseable is found.
    """
    content = _strip_fences(text or '')
    first = content.find('{')
    last = content.rfind('}')
    if first != -1 and last > first:
        content = content[first:last + 1]
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data


def _is_number(value):
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError, OverflowError):
        return False


def _location_context(location):
    if not isinstance(location, dict):
        return ''
    try:
        lat = float(location.get('lat'))
        lng = float(location.get('lng'))
    except (TypeError, ValueError):
        logger.warning("Invalid location coordinates: %s", location)
        return ''
    return f"The search is focused around coordinates ({lat:.4f}, {lng:.4f}). "


def _validate_filters(parsed):
    filters = default_filters()

    types = parsed.get('types')
    if isinstance(types, list):
        filters['types'] = [t for t in types if t in config.ACTIVITY_TYPES]

    price_range = parsed.get('priceRange')
    if (isinstance(price_range, dict)
            and _is_number(price_range.get('min'))
            and _is_number(price_range.get('max'))):
        filters['priceRange'] = {
            'min': float(price_range['min']),
            'max': float(price_range['max']),
        }

    tags = parsed.get('tags')
    if isinstance(tags, list):
        filters['tags'] = [str(t) for t in tags]

    return filters


def process_natural_language_query(query, location=None):
    """Turn a free-text search into structured filters.

    Returns the default filters when the key is missing, the call fails,
    or the answer holds no usable JSON.
    """
    if not config.GROQ_API_KEY:
        logger.warning("Groq API key not found. Using default filters.")
        return default_filters()

    messages = [
        {
            "role": "system",
            "content": (
                "You are an expert in analyzing natural language search queries for leisure "
                f"activities and events. {_location_context(location)}Extract structured search "
                "parameters from user queries. Return ONLY valid JSON with no extra text."
            ),
        },
        {
            "role": "user",
            "content": (
                f'Extract search filters from this query: "{query}"\n'
                f"Valid activity types are: {', '.join(config.ACTIVITY_TYPES)}.\n"
                "Return ONLY a valid JSON object with these fields (if detected):\n"
                '{"types":["type1","type2"], "priceRange":{"min":0,"max":100}, "tags":["tag1","tag2"]}'
            ),
        },
    ]

    try:
        response = call_groq(messages, max_tokens=300, temperature=0.2)
    except ProviderError as e:
        logger.error("Error processing natural language query %r: %s", query, e.message)
        return default_filters()

    content = _message_content(response, '{}')
    try:
        return _validate_filters(extract_json_object(content))
    except ValueError as e:
        logger.error("Failed to parse JSON from Groq response: %s", e)
        logger.debug("Problematic content: %s", content)
        return default_filters()


def enhance_activity_description(description, activity_type):
    """Rewrite an activity description to be more engaging; falls back to the original."""
    if not config.GROQ_API_KEY:
        logger.warning("Groq API key not found. Using original description.")
        return description

    messages = [
        {
            "role": "system",
            "content": (
                "You are a travel and leisure expert. Enhance the given activity description to "
                "make it more engaging, informative and exciting without being verbose. Maintain "
                "the original tone and key information, but add helpful details travelers would "
                "appreciate."
            ),
        },
        {
            "role": "user",
            "content": (
                f"Enhance this {activity_type} activity description "
                f"(keep it under 200 characters): {description}"
            ),
        },
    ]
    try:
        response = call_groq(messages, max_tokens=250, temperature=0.7)
    except ProviderError as e:
        logger.error("Error enhancing description with Groq: %s", e.message)
        return description
    return _message_content(response, description)


def _by_rating(activities):
    return sorted(activities, key=lambda a: a.get('rating') or 0, reverse=True)


def _parse_ranked_ids(content):
    content = _strip_fences(content).strip()
    if content.startswith('['):
        data = json.loads(content)
    else:
        data = extract_json_object(content).get('rankedIds', [])
    if not isinstance(data, list):
        raise ValueError("rankedIds is not a list")
    return [str(i) for i in data]


def rank_activities(activities, preferences):
    """Order activities by how well they fit the user's favourite types and tags."""
    if not config.GROQ_API_KEY:
        logger.warning("Groq API key not found. Using basic recommendation logic.")
        return _by_rating(activities)

    summary = [
        {
            "id": a.get('id'),
            "title": a.get('title'),
            "type": a.get('type'),
            "tags": a.get('tags', []),
            "rating": a.get('rating') or 0,
        }
        for a in activities
    ]
    messages = [
        {
            "role": "system",
            "content": (
                "You are a personalization expert helping to rank leisure activities for a user. "
                'Return a JSON object {"rankedIds": [...]} with activity IDs in order of '
                "recommendation relevance based on the user's preferences."
            ),
        },
        {
            "role": "user",
            "content": (
                f"Given these user preferences: {json.dumps(preferences)}\n"
                f"And these activities: {json.dumps(summary)}\n"
                "Return the activity IDs in order of recommendation (most relevant first). "
                "Only include the IDs, not the full objects."
            ),
        },
    ]

    try:
        response = call_groq(messages, max_tokens=500, temperature=0.3)
        ranked_ids = _parse_ranked_ids(_message_content(response, '{"rankedIds": []}'))
    except (ProviderError, ValueError) as e:
        logger.error("Error getting personalized recommendations: %s", e)
        return _by_rating(activities)

    rank = {activity_id: i for i, activity_id in enumerate(ranked_ids)}
    unranked = len(rank)
    return sorted(activities, key=lambda a: rank.get(str(a.get('id')), unranked))


def get_web_search_summary(title, activity_type, location=None):
    """Visitor-oriented summary of an activity."""
    if not config.GROQ_API_KEY:
        logger.warning("Groq API key not found. Cannot generate web search summary.")
        return 'Web search summary is not available at this time.'

    if location:
        search_query = f"{title} {activity_type} in {location} tourism review information"
    else:
        search_query = f"{title} {activity_type} tourism review information"
    logger.info("Generating web search summary for query: %s", search_query)

    messages = [
        {
            "role": "system",
            "content": (
                "You are a travel and leisure information expert that specializes in summarizing "
                "information from web searches. Given a search query about a leisure activity, "
                "provide a well-structured, informative summary that would help someone decide if "
                "they want to visit or participate in this activity. Include details about what "
                "makes this place special, what visitors can expect, best times to visit, and any "
                "other helpful travel tips when available."
            ),
        },
        {
            "role": "user",
            "content": (
                f'Please search the web for information about: "{search_query}" and provide a '
                "comprehensive but concise summary of what you find. Structure your response to "
                "include:\n\n1. A brief overview of what it is\n2. Key highlights and attractions\n"
                "3. Practical visitor information (hours, costs, best times to visit)\n"
                "4. Interesting facts or history\n5. Tips from visitor reviews"
            ),
        },
    ]
    try:
        response = call_groq(messages, max_tokens=800, temperature=0.4)
    except ProviderError as e:
        logger.error("Error generating web search summary with Groq: %s", e.message)
        return 'Unable to generate a summary from web search results at this time.'
    return _message_content(response, 'No information found.')


def process_image_content(base64_image):
    """Ask the model for text, objects and suggested filters for an uploaded image."""
    result = {
        "extractedText": "",
        "detectedObjects": [],
        "suggestedFilters": {"types": [], "tags": []},
    }
    if not config.GROQ_API_KEY:
        logger.warning("Groq API key not found. Cannot process image content.")
        return result

    messages = [
        {
            "role": "system",
            "content": (
                "You are an expert at analyzing images of leisure activities and events. Extract "
                "text content, identify objects, and suggest search filters based on the image."
            ),
        },
        {
            "role": "user",
            "content": (
                "Analyze this image related to a leisure activity or event. The image is base64 "
                f"encoded: {base64_image[:2000]}\n\nRespond with ONLY a JSON object with these "
                "properties:\n1. extractedText: Any visible text in the image\n"
                "2. detectedObjects: Array of objects/items identified in the image\n"
                "3. suggestedFilters: Object with arrays for 'types' and 'tags' that would be "
                "good search terms"
            ),
        },
    ]
    try:
        response = call_groq(messages, max_tokens=500, temperature=0.2)
    except ProviderError as e:
        logger.error("Error processing image with Groq: %s", e.message)
        return result

    content = _message_content(response, '{}')
    try:
        parsed = extract_json_object(content)
    except ValueError as e:
        logger.error("Failed to parse JSON from Groq image processing response: %s", e)
        result["extractedText"] = re.sub(r"[\n\r]+", " ", content)[:100]
        return result

    suggested = parsed.get('suggestedFilters') or {}
    if not isinstance(suggested, dict):
        suggested = {}
    result["extractedText"] = parsed.get('extractedText') or ""
    if isinstance(parsed.get('detectedObjects'), list):
        result["detectedObjects"] = parsed['detectedObjects']
    if isinstance(suggested.get('types'), list):
        result["suggestedFilters"]["types"] = suggested['types']
    if isinstance(suggested.get('tags'), list):
        result["suggestedFilters"]["tags"] = suggested['tags']
    return result


def generate_place_info(place_name, address=None, description=None):
    """Structured write-up of a place (introduction, highlights, tips...)."""
    lines = [f"Name: {place_name}"]
    if address:
        lines.append(f"Address: {address}")
    if description:
        lines.append(f"Current Description: {description}")

    prompt = (
        "Generate an engaging and detailed description for the following place:\n\n"
        + "\n".join(lines)
        + """

Provide the following sections:
1. Introduction - An engaging opening paragraph about the place (2-3 sentences)
2. Highlights - List 3-4 key features or attractions of this place
3. Experience - What visitors can expect when visiting (2-3 sentences)
4. Historical Context - Brief interesting historical facts (if applicable)
5. Tips - 2-3 practical tips for visitors

Format the response as clean, well-structured JSON with the following schema:
{
  "introduction": "string",
  "highlights": ["string", "string", "string"],
  "experience": "string",
  "historicalContext": "string",
  "tips": ["string", "string", "string"]
}

Keep the tone friendly and informative. Do not include any markdown formatting in the actual text."""
    )
    messages = [
        {
            "role": "system",
            "content": (
                "You are a knowledgeable travel assistant who provides accurate, concise, and "
                "engaging information about places and attractions."
            ),
        },
        {"role": "user", "content": prompt},
    ]
    response = call_groq(
        messages,
        model=config.GROQ_LARGE_MODEL,
        max_tokens=1000,
        temperature=0.7,
        response_format={"type": "json_object"},
    )
    try:
        return extract_json_object(_message_content(response, '{}'))
    except ValueError as e:
        raise ProviderError("Failed to generate place information", error=str(e))
