import logging

import httpx
import openai
from openai import OpenAI, AzureOpenAI

from .errors import ProviderError

logger = logging.getLogger(__name__)

# System message to set the behavior of the assistant
PERSONA = (
    "You are 阿詩 (Sze), a patient Cantonese conversation partner for learners. "
    "Always reply in natural spoken Hong Kong Cantonese written in Traditional Chinese characters "
    "(use 嘅、咗、喺、唔、冇 rather than Mandarin forms). "
    "Keep replies to one to three short sentences and end with a simple question that keeps the conversation going. "
    "Do not correct the learner mid-conversation; corrections are given separately."
)

FEEDBACK_INSTRUCTIONS = (
    "You are a supportive Cantonese teacher. Give ONE short line of feedback (max 40 characters) "
    "on the learner's latest sentence: point out the most useful wording or grammar fix in Cantonese, "
    "or praise it if it is already natural. Write in Traditional Chinese. No greetings, no lists."
)


def system_prompt(scenario: str) -> str:
    scene = scenario or '自由對話 (Free Conversation)'
    return f"{PERSONA}\nRole-play scenario: {scene}. Stay within this scenario unless the learner changes topic."


def build_client(config):
    """Return a chat-completion client for the configured provider, or None for mock."""
    provider = config['LLM_PROVIDER']
    api_key = config['LLM_API_KEY']
    if provider not in ('openai', 'azure'):
        return None
    if not api_key:
        logger.warning("LLM_PROVIDER=%s but LLM_API_KEY is missing; using mock replies", provider)
        return None
    timeout = config['LLM_TIMEOUT_SECONDS']
    # Single attempt: a failed call falls back to the mock responder
    try:
        if provider == 'azure':
            if not config['LLM_BASE_URL']:
                logger.warning("LLM_PROVIDER=azure but LLM_BASE_URL is missing; using mock replies")
                return None
            raw = AzureOpenAI(api_key=api_key, api_version=config['LLM_API_VERSION'],
                              azure_endpoint=config['LLM_BASE_URL'], timeout=timeout, max_retries=0)
        else:
            raw = OpenAI(api_key=api_key, base_url=config['LLM_BASE_URL'] or None,
                         timeout=timeout, max_retries=0)
    except (openai.OpenAIError, ValueError) as e:
        logger.warning("Could not configure %s chat client (%s); using mock replies", provider, e)
        return None
    return ChatClient(raw, model=config['LLM_MODEL'], provider=provider)


class ChatClient:
    def __init__(self, client, model='gpt-4o-mini', provider='openai'):
        self.client = client
        self.model = model
        self.provider = provider

    def complete(self, messages, temperature=0.7, max_tokens=300) -> str:
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
            text = (resp.choices[0].message.content or '').strip()
        except (openai.APITimeoutError, httpx.TimeoutException) as e:
            raise ProviderError(f'{self.provider} chat timed out') from e
        except (openai.APIConnectionError, httpx.ConnectError) as e:
            raise ProviderError(f'cannot reach {self.provider} chat endpoint') from e
        except openai.APIStatusError as e:
            raise ProviderError(f'{self.provider} chat error {e.status_code}') from e
        except (AttributeError, IndexError, TypeError) as e:
            raise ProviderError(f'malformed {self.provider} chat payload') from e
        except openai.OpenAIError as e:
            raise ProviderError(f'{self.provider} chat failed: {e}') from e
        if not text:
            raise ProviderError(f'{self.provider} chat returned empty content')
        return text

    def reply(self, history, user_text: str, scenario: str) -> str:
        messages = [{'role': 'system', 'content': system_prompt(scenario)}]
        messages.extend(turn.to_message() for turn in history if turn.text)
        messages.append({'role': 'user', 'content': user_text or '（學生未有講嘢，請鼓勵佢開口練習。）'})
        return self.complete(messages, temperature=0.7, max_tokens=200)

    def feedback(self, user_text: str, scenario: str) -> str:
        messages = [
            {'role': 'system', 'content': FEEDBACK_INSTRUCTIONS},
            {'role': 'user', 'content': f"Scenario: {scenario or 'free conversation'}\nLearner said: {user_text}"},
        ]
        return self.complete(messages, temperature=0.3, max_tokens=80)
