"""Google Cloud Speech-to-Text integration for voice search."""

import base64
import logging

import requests

import config
from errors import MissingApiKeyError, ProviderError

logger = logging.getLogger(__name__)


def transcribe(audio, encoding='LINEAR16', sample_rate=16000, language='en-US'):
    """Transcribe raw audio bytes; alternatives are joined with newlines."""
    if not config.GOOGLE_CLOUD_API_KEY:
        raise MissingApiKeyError("Google Cloud Speech")

    body = {
        "config": {
            "encoding": encoding,
            "sampleRateHertz": sample_rate,
            "languageCode": language,
        },
        "audio": {"content": base64.b64encode(audio).decode('ascii')},
    }
    try:
        response = requests.post(
            config.SPEECH_API_URL,
            params={"key": config.GOOGLE_CLOUD_API_KEY},
            json=body,
            timeout=60,
        )
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        raise ProviderError("Error contacting Speech-to-Text API", error=str(e))

    if not response.ok:
        raise ProviderError("Speech-to-Text API error", error=data.get('error', {}).get('message'))

    transcripts = []
    for result in data.get('results', []):
        alternatives = result.get('alternatives') or []
        if alternatives and alternatives[0].get('transcript'):
            transcripts.append(alternatives[0]['transcript'])

    logger.info("Transcribed %d segment(s)", len(transcripts))
    return '\n'.join(transcripts)
