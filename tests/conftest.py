import random

import pytest

from cantonese_tutor import create_app
from cantonese_tutor.cache import AudioCache
from cantonese_tutor.errors import ProviderError
from cantonese_tutor.mock import MockResponder
from cantonese_tutor.orchestrator import ConversationOrchestrator
from cantonese_tutor.sessions import SessionStore

FAKE_MP3 = 'data:audio/mpeg;base64,SUQzBAAAAAAA'


class StubChat:
    """Chat client double: fixed reply/feedback, or raises when told to."""

    def __init__(self, reply='好呀，你想食啲咩？', feedback='講得好自然！', fail=False):
        self._reply = reply
        self._feedback = feedback
        self.fail = fail
        self.reply_calls = []
        self.feedback_calls = []

    def reply(self, history, user_text, scenario):
        self.reply_calls.append((list(history), user_text, scenario))
        if self.fail:
            raise ProviderError('chat unavailable')
        return self._reply

    def feedback(self, user_text, scenario):
        self.feedback_calls.append((user_text, scenario))
        if self.fail:
            raise ProviderError('chat unavailable')
        return self._feedback


class StubSpeech:
    provider = 'azure'

    def __init__(self, fail=False, transcript=('我想要一杯奶茶', 0.91)):
        self.fail = fail
        self.transcript = transcript
        self.synth_calls = []
        self.recognize_calls = []

    def synthesize(self, text):
        self.synth_calls.append(text)
        if self.fail:
            raise ProviderError('Azure TTS error 503')
        return FAKE_MP3

    def recognize(self, audio_data):
        self.recognize_calls.append(audio_data)
        if self.fail:
            raise ProviderError('Azure STT status NoMatch')
        return self.transcript


@pytest.fixture
def make_orchestrator():
    def _make(chat=None, speech=None, max_turns=20, cache_size=50, **kwargs):
        return ConversationOrchestrator(
            sessions=SessionStore(max_turns=max_turns),
            cache=AudioCache(max_entries=cache_size),
            mock=MockResponder(rng=random.Random(7)),
            chat=chat,
            speech=speech,
            **kwargs
        )
    return _make


@pytest.fixture
def make_client(make_orchestrator):
    def _make(overrides=None, **orchestrator_kwargs):
        config = {'TESTING': True, 'ENABLE_ANALYTICS': False, 'TTS_PROVIDER': 'mock', 'LLM_PROVIDER': 'mock'}
        config.update(overrides or {})
        orchestrator = make_orchestrator(**orchestrator_kwargs)
        app = create_app(config, orchestrator=orchestrator)
        return app.test_client(), orchestrator
    return _make


@pytest.fixture
def client(make_client):
    test_client, _ = make_client()
    return test_client
