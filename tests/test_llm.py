from types import SimpleNamespace

import httpx
import openai
import pytest

from cantonese_tutor.errors import ProviderError
from cantonese_tutor.llm import ChatClient, build_client, system_prompt
from cantonese_tutor.sessions import Turn


class FakeCompletions:
    def __init__(self, content='你好呀！今日想傾咩？', error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(**kwargs):
    completions = FakeCompletions(**kwargs)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_reply_sends_system_history_and_user():
    raw, completions = fake_client()
    chat = ChatClient(raw, model='gpt-4o-mini')
    history = [Turn('user', '早晨'), Turn('assistant', '早晨！')]
    assert chat.reply(history, '我想叫外賣', '餐廳點餐 (At the Restaurant)') == '你好呀！今日想傾咩？'

    messages = completions.calls[0]['messages']
    assert messages[0]['role'] == 'system'
    assert '餐廳點餐' in messages[0]['content']
    assert messages[1:] == [
        {'role': 'user', 'content': '早晨'},
        {'role': 'assistant', 'content': '早晨！'},
        {'role': 'user', 'content': '我想叫外賣'},
    ]
    assert completions.calls[0]['model'] == 'gpt-4o-mini'


def test_feedback_uses_distinct_prompt():
    raw, completions = fake_client(content='「叫外賣」用得啱！')
    assert ChatClient(raw).feedback('我想叫外賣', '') == '「叫外賣」用得啱！'
    assert 'teacher' in completions.calls[0]['messages'][0]['content']


@pytest.mark.parametrize('content', ['', '   ', None])
def test_empty_content_is_a_provider_error(content):
    raw, _ = fake_client(content=content)
    with pytest.raises(ProviderError, match='empty'):
        ChatClient(raw).reply([], '你好', '')


@pytest.mark.parametrize('error', [
    openai.APITimeoutError(request=httpx.Request('POST', 'https://llm.test/chat')),
    openai.APIConnectionError(request=httpx.Request('POST', 'https://llm.test/chat')),
    httpx.ConnectTimeout('slow'),
    openai.OpenAIError('unexpected client failure'),
])
def test_transport_errors_are_provider_errors(error):
    raw, _ = fake_client(error=error)
    with pytest.raises(ProviderError):
        ChatClient(raw).reply([], '你好', '')


def test_malformed_payload_is_a_provider_error():
    raw = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(
        create=lambda **kwargs: SimpleNamespace(choices=[]))))
    with pytest.raises(ProviderError, match='malformed'):
        ChatClient(raw).reply([], '你好', '')


def test_system_prompt_defaults_to_free_conversation():
    assert '自由對話' in system_prompt('')


def test_build_client_mock_or_missing_key_is_none():
    base = {'LLM_PROVIDER': 'mock', 'LLM_API_KEY': 'x', 'LLM_TIMEOUT_SECONDS': 8,
            'LLM_BASE_URL': None, 'LLM_MODEL': 'gpt-4o-mini', 'LLM_API_VERSION': '2024-06-01'}
    assert build_client(base) is None
    assert build_client({**base, 'LLM_PROVIDER': 'openai', 'LLM_API_KEY': None}) is None


def test_build_client_openai():
    config = {'LLM_PROVIDER': 'openai', 'LLM_API_KEY': 'sk-test', 'LLM_TIMEOUT_SECONDS': 8,
              'LLM_BASE_URL': None, 'LLM_MODEL': 'gpt-4o-mini', 'LLM_API_VERSION': '2024-06-01'}
    chat = build_client(config)
    assert isinstance(chat, ChatClient)
    assert chat.provider == 'openai'
    assert chat.client.max_retries == 0


def test_build_client_azure_without_base_url_is_none():
    config = {'LLM_PROVIDER': 'azure', 'LLM_API_KEY': 'x', 'LLM_TIMEOUT_SECONDS': 8,
              'LLM_BASE_URL': None, 'LLM_MODEL': 'gpt-4o-mini', 'LLM_API_VERSION': '2024-06-01'}
    assert build_client(config) is None
