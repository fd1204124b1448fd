"""
Unit tests for the Google Calendar glue
"""
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest

import calendar_service
from conftest import json_response
from errors import ProviderError, ValidationError


@pytest.mark.unit
class TestOAuthState:

    def test_round_trip(self):
        state = calendar_service.sign_state('secret')
        assert state.startswith('calendar:')
        assert calendar_service.verify_state('secret', state)

    def test_rejects_tampering(self):
        kind, nonce, sig = calendar_service.sign_state('secret').split(':')
        assert not calendar_service.verify_state('other-secret', f"{kind}:{nonce}:{sig}")
        assert not calendar_service.verify_state('secret', f"auth:{nonce}:{sig}")
        assert not calendar_service.verify_state('secret', 'garbage')
        assert not calendar_service.verify_state('secret', None)

    def test_auth_url(self, monkeypatch):
        monkeypatch.setattr(calendar_service.config, 'GOOGLE_CLIENT_ID', 'client-1')
        url = calendar_service.build_auth_url([calendar_service.CALENDAR_SCOPE], 'calendar:n:s')
        query = parse_qs(urlparse(url).query)

        assert url.startswith(calendar_service.AUTH_URL)
        assert query['client_id'] == ['client-1']
        assert query['scope'] == [f"openid email {calendar_service.CALENDAR_SCOPE}"]
        assert query['state'] == ['calendar:n:s']
        assert query['access_type'] == ['offline']


@pytest.mark.unit
class TestBuildEvent:

    def test_end_defaults_to_one_hour(self):
        event = calendar_service.build_event('Zoo visit', '2025-06-01T10:00:00Z')
        assert event['start']['dateTime'] == '2025-06-01T10:00:00+00:00'
        assert event['end']['dateTime'] == '2025-06-01T11:00:00+00:00'
        assert event['reminders'] == {'useDefault': True}
        assert event['start']['timeZone'] == calendar_service.config.CALENDAR_TIMEZONE

    def test_explicit_end(self):
        event = calendar_service.build_event(
            'Dinner', '2025-06-01T18:00:00', '2025-06-01T20:30:00', 'Table for two', 'Pearl District'
        )
        assert event['end']['dateTime'] == '2025-06-01T20:30:00'
        assert event['description'] == 'Table for two'
        assert event['location'] == 'Pearl District'

    def test_invalid_start(self):
        with pytest.raises(ValidationError):
            calendar_service.build_event('Bad', 'next tuesday')


@pytest.mark.unit
class TestCalendarApi:

    def test_exchange_code_error(self):
        body = {'error': 'invalid_grant', 'error_description': 'Bad Request'}
        with patch('calendar_service.requests.post', return_value=json_response(body)):
            with pytest.raises(ProviderError) as exc:
                calendar_service.exchange_code('code')
        assert exc.value.status_code == 400
        assert exc.value.error == 'Bad Request'

    def test_insert_event(self):
        created = {'id': 'evt1', 'htmlLink': 'https://calendar.google.com/evt1'}
        with patch('calendar_service.requests.request', return_value=json_response(created)) as mock_req:
            result = calendar_service.insert_event('tok', {'summary': 'x'})

        assert result == created
        args, kwargs = mock_req.call_args
        assert args == ('POST', calendar_service.EVENTS_URL)
        assert kwargs['headers']['Authorization'] == 'Bearer tok'
        assert kwargs['json'] == {'summary': 'x'}

    def test_insert_event_failure_keeps_status(self):
        body = {'error': {'message': 'Invalid Credentials'}}
        with patch('calendar_service.requests.request', return_value=json_response(body, ok=False, status_code=401)):
            with pytest.raises(ProviderError) as exc:
                calendar_service.insert_event('tok', {})
        assert exc.value.status_code == 401
        assert exc.value.message == 'Invalid Credentials'

    def test_list_upcoming_events(self):
        with patch('calendar_service.requests.request', return_value=json_response({'items': [{'id': 'a'}]})) as mock_req:
            events = calendar_service.list_upcoming_events('tok')

        assert events == [{'id': 'a'}]
        params = mock_req.call_args.kwargs['params']
        assert params['singleEvents'] == 'true'
        assert params['orderBy'] == 'startTime'
