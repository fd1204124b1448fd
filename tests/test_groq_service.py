"""
Unit tests for the Groq LLM glue
"""
from unittest.mock import patch

import pytest
import requests

import groq_service
from conftest import groq_reply, json_response
from errors import MissingApiKeyError, ProviderError


@pytest.mark.unit
class TestExtractJsonObject:

    def test_plain_object(self):
        assert groq_service.extract_json_object('{"a": 1}') == {'a': 1}

    def test_fenced_object(self):
        text = 'Here you go:\n```json\n{"types": ["outdoor"]}\n```\nEnjoy!'
        assert groq_service.extract_json_object(text) == {'types': ['outdoor']}

    def test_object_surrounded_by_chatter(self):
        text = 'Sure! {"tags": ["hiking"], "priceRange": {"min": 0, "max": 20}} Hope that helps.'
        assert groq_service.extract_json_object(text)['priceRange'] == {'min': 0, 'max': 20}

    def test_no_object_raises(self):
        with pytest.raises(ValueError):
            groq_service.extract_json_object('no json here')

    def test_array_is_rejected(self):
        with pytest.raises(ValueError):
            groq_service.extract_json_object('[1, 2]')


@pytest.mark.unit
class TestNaturalLanguageQuery:

    def test_without_key_returns_defaults(self):
        with patch('groq_service.requests.post') as mock_post:
            filters = groq_service.process_natural_language_query('free hikes this weekend')
        mock_post.assert_not_called()
        assert filters == groq_service.default_filters()

    def test_parses_and_validates_filters(self, groq_key):
        content = (
            '```json\n{"types": ["outdoor", "skydiving"], '
            '"priceRange": {"min": "0", "max": 50}, "tags": ["hiking", 3]}\n```'
        )
        with patch('groq_service.requests.post', return_value=groq_reply(content)):
            filters = groq_service.process_natural_language_query(
                'cheap hikes', {'lat': 45.515234, 'lng': -122.678412}
            )

        assert filters == {
            'types': ['outdoor'],
            'priceRange': {'min': 0.0, 'max': 50.0},
            'tags': ['hiking', '3'],
        }

    def test_location_is_added_to_prompt(self, groq_key):
        with patch('groq_service.requests.post', return_value=groq_reply('{}')) as mock_post:
            groq_service.process_natural_language_query('museums', {'lat': 45.515234, 'lng': -122.678412})

        payload = mock_post.call_args.kwargs['json']
        assert '(45.5152, -122.6784)' in payload['messages'][0]['content']
        assert payload['temperature'] == 0.2
        assert payload['max_tokens'] == 300

    def test_unparseable_answer_returns_defaults(self, groq_key):
        with patch('groq_service.requests.post', return_value=groq_reply('I am not sure.')):
            assert groq_service.process_natural_language_query('?') == groq_service.default_filters()

    def test_bad_price_range_is_dropped(self, groq_key):
        content = '{"types": ["culinary"], "priceRange": {"min": "cheap"}}'
        with patch('groq_service.requests.post', return_value=groq_reply(content)):
            filters = groq_service.process_natural_language_query('food')
        assert filters['types'] == ['culinary']
        assert filters['priceRange'] == {'min': 0, 'max': 1000}

    @pytest.mark.parametrize('price_range', [
        '{"min": NaN, "max": 50}',
        '{"min": 0, "max": Infinity}',
        '{"min": -Infinity, "max": 10}',
        '{"min": 0, "max": 1' + '0' * 400 + '}',
    ])
    def test_non_finite_price_range_is_dropped(self, groq_key, price_range):
        content = '{"priceRange": ' + price_range + '}'
        with patch('groq_service.requests.post', return_value=groq_reply(content)):
            filters = groq_service.process_natural_language_query('anything')
        assert filters['priceRange'] == {'min': 0, 'max': 1000}

    def test_api_error_returns_defaults(self, groq_key):
        error = json_response({'error': 'rate limited'}, ok=False, status_code=429)
        with patch('groq_service.requests.post', return_value=error):
            assert groq_service.process_natural_language_query('x') == groq_service.default_filters()


@pytest.mark.unit
class TestCallGroq:

    def test_missing_key(self):
        with pytest.raises(MissingApiKeyError):
            groq_service.call_groq([{'role': 'user', 'content': 'hi'}])

    def test_network_error(self, groq_key):
        with patch('groq_service.requests.post', side_effect=requests.Timeout("slow")):
            with pytest.raises(ProviderError):
                groq_service.call_groq([{'role': 'user', 'content': 'hi'}])

    def test_sends_model_and_auth(self, groq_key):
        with patch('groq_service.requests.post', return_value=groq_reply('ok')) as mock_post:
            groq_service.call_groq([], model='custom-model', max_tokens=10)

        kwargs = mock_post.call_args.kwargs
        assert kwargs['headers']['Authorization'] == 'Bearer test-groq-key'
        assert kwargs['json']['model'] == 'custom-model'
        assert kwargs['json']['max_tokens'] == 10


@pytest.mark.unit
class TestRankActivities:

    activities = [
        {'id': '1', 'title': 'A', 'rating': 4.0},
        {'id': '2', 'title': 'B', 'rating': 4.9},
        {'id': '3', 'title': 'C', 'rating': 4.5},
    ]

    def test_without_key_sorts_by_rating(self):
        ranked = groq_service.rank_activities(self.activities, {})
        assert [a['id'] for a in ranked] == ['2', '3', '1']

    def test_follows_model_order(self, groq_key):
        with patch('groq_service.requests.post', return_value=groq_reply('{"rankedIds": ["3", "1"]}')):
            ranked = groq_service.rank_activities(self.activities, {'favoriteTypes': ['outdoor']})
        # unranked ids go last
        assert [a['id'] for a in ranked] == ['3', '1', '2']

    def test_accepts_bare_array(self, groq_key):
        with patch('groq_service.requests.post', return_value=groq_reply('[2, 1, 3]')):
            ranked = groq_service.rank_activities(self.activities, {})
        assert [a['id'] for a in ranked] == ['2', '1', '3']

    def test_garbage_falls_back_to_rating(self, groq_key):
        with patch('groq_service.requests.post', return_value=groq_reply('top picks: C then A')):
            ranked = groq_service.rank_activities(self.activities, {})
        assert [a['id'] for a in ranked] == ['2', '3', '1']


@pytest.mark.unit
class TestTextHelpers:

    def test_enhance_without_key_returns_original(self):
        assert groq_service.enhance_activity_description('A park.', 'outdoor') == 'A park.'

    def test_enhance(self, groq_key):
        with patch('groq_service.requests.post', return_value=groq_reply('A lush park.')):
            assert groq_service.enhance_activity_description('A park.', 'outdoor') == 'A lush park.'

    def test_summary_without_key(self):
        assert groq_service.get_web_search_summary('Zoo', 'outdoor') == \
            'Web search summary is not available at this time.'

    def test_summary_on_failure(self, groq_key):
        with patch('groq_service.requests.post', side_effect=requests.ConnectionError()):
            assert groq_service.get_web_search_summary('Zoo', 'outdoor', 'Portland') == \
                'Unable to generate a summary from web search results at this time.'

    def test_image_content_unparseable(self, groq_key):
        with patch('groq_service.requests.post', return_value=groq_reply('A poster\nfor a concert')):
            result = groq_service.process_image_content('aGVsbG8=')
        assert result['extractedText'] == 'A poster for a concert'
        assert result['suggestedFilters'] == {'types': [], 'tags': []}

    def test_image_content(self, groq_key):
        content = '{"extractedText": "Jazz Night", "detectedObjects": ["saxophone"], ' \
                  '"suggestedFilters": {"types": ["nightlife"], "tags": ["jazz"]}}'
        with patch('groq_service.requests.post', return_value=groq_reply(content)):
            result = groq_service.process_image_content('aGVsbG8=')
        assert result == {
            'extractedText': 'Jazz Night',
            'detectedObjects': ['saxophone'],
            'suggestedFilters': {'types': ['nightlife'], 'tags': ['jazz']},
        }

    def test_place_info_uses_large_model(self, groq_key):
        content = '{"introduction": "Hi", "highlights": [], "experience": "", "historicalContext": "", "tips": []}'
        with patch('groq_service.requests.post', return_value=groq_reply(content)) as mock_post:
            info = groq_service.generate_place_info('Pittock Mansion', '3229 NW Pittock Dr')

        assert info['introduction'] == 'Hi'
        payload = mock_post.call_args.kwargs['json']
        assert payload['model'] == groq_service.config.GROQ_LARGE_MODEL
        assert payload['response_format'] == {'type': 'json_object'}
        assert 'Address: 3229 NW Pittock Dr' in payload['messages'][1]['content']

    def test_place_info_without_key(self):
        with pytest.raises(MissingApiKeyError):
            groq_service.generate_place_info('Somewhere')
