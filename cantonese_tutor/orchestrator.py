"""Conversation-turn orchestration.

One exchange: record the learner's utterance, get a reply and a feedback line
from the chat provider, voice the reply through the speech provider (cached by
reply text), and hand back everything the frontend renders. Provider failures
degrade to the mock responder; only a missing session id is the caller's fault.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import MissingSessionId, ProviderError
from .sessions import Turn

logger = logging.getLogger(__name__)

MOCK = 'mock'


@dataclass
class TurnResult:
    ai_text: str
    feedback: str
    tts_audio: str
    history: List[Turn] = field(default_factory=list)
    latency_ms: int = 0
    tts_provider: str = MOCK
    tts_latency_ms: int = 0
    tts_error: Optional[str] = None
    tts_fallback: bool = False
    tts_cached: bool = False

    def to_dict(self):
        return {
            'aiText': self.ai_text,
            'feedback': self.feedback,
            'ttsAudio': self.tts_audio,
            'history': [t.to_dict() for t in self.history],
            'latencyMs': self.latency_ms,
            'ttsProvider': self.tts_provider,
            'ttsLatency': self.tts_latency_ms,
            'ttsError': self.tts_error,
            'ttsFallback': self.tts_fallback,
            'ttsCached': self.tts_cached,
        }


@dataclass
class TranscriptResult:
    transcript: str
    confidence: float
    provider: str
    error: Optional[str] = None

    def to_dict(self):
        d = {'transcript': self.transcript, 'confidence': self.confidence, 'provider': self.provider}
        if self.error:
            d['error'] = self.error
        return d


def _clip(value, limit):
    return value[:limit] if isinstance(value, str) else ''


def _elapsed_ms(started):
    return int((time.perf_counter() - started) * 1000)


class ConversationOrchestrator:
    def __init__(self, sessions, cache, mock, chat=None, speech=None,
                 max_user_chars=400, max_scenario_chars=120, context_turns=10,
                 feedback_enabled=True):
        self.sessions = sessions
        self.cache = cache
        self.mock = mock
        self.chat = chat
        self.speech = speech
        self.max_user_chars = max_user_chars
        self.max_scenario_chars = max_scenario_chars
        self.context_turns = context_turns
        self.feedback_enabled = feedback_enabled

    @property
    def configured_tts_provider(self) -> str:
        return self.speech.provider if self.speech is not None else MOCK

    def exchange(self, session_id, user_text='', scenario='') -> TurnResult:
        if not isinstance(session_id, str) or not session_id:
            raise MissingSessionId()
        started = time.perf_counter()
        user_text = _clip(user_text, self.max_user_chars).strip()
        scenario = _clip(scenario, self.max_scenario_chars)

        history = self.sessions.get_history(session_id)
        context = history[-self.context_turns:] if self.context_turns > 0 else []
        ai_text = self._reply(context, user_text, scenario)
        feedback = self._feedback(user_text, scenario)

        history = self.sessions.append_turns(session_id, [
            Turn(role='user', text=user_text, scenario=scenario),
            Turn(role='assistant', text=ai_text),
        ])

        result = TurnResult(ai_text=ai_text, feedback=feedback, tts_audio='', history=history)
        self._voice(result)
        result.latency_ms = _elapsed_ms(started)
        return result

    def _reply(self, context, user_text, scenario):
        if self.chat is not None:
            try:
                return self.chat.reply(context, user_text, scenario)
            except ProviderError as e:
                logger.warning("Chat reply failed, falling back to mock: %s", e)
        return self.mock.mock_reply(user_text, scenario)

    def _feedback(self, user_text, scenario):
        if self.chat is not None and self.feedback_enabled and user_text:
            try:
                return self.chat.feedback(user_text, scenario)
            except ProviderError as e:
                logger.warning("Chat feedback failed, using fixed phrase: %s", e)
        return self.mock.mock_feedback(user_text)

    def _voice(self, result):
        if self.speech is None:
            result.tts_audio = self.mock.mock_audio()
            return

        cached = self.cache.lookup(result.ai_text)
        if cached is not None:
            result.tts_audio = cached
            result.tts_provider = self.speech.provider
            result.tts_cached = True
            return

        started = time.perf_counter()
        try:
            audio = self.speech.synthesize(result.ai_text)
        except ProviderError as e:
            logger.warning("%s TTS failed, falling back to mock: %s", self.speech.provider, e)
            result.tts_audio = self.mock.mock_audio()
            result.tts_error = str(e)
            result.tts_fallback = True
        else:
            self.cache.store(result.ai_text, audio)
            result.tts_audio = audio
            result.tts_provider = self.speech.provider
        result.tts_latency_ms = _elapsed_ms(started)

    def transcribe(self, audio_data) -> TranscriptResult:
        error = None
        if self.speech is not None:
            try:
                transcript, confidence = self.speech.recognize(audio_data)
                return TranscriptResult(transcript, confidence, self.speech.provider)
            except ProviderError as e:
                logger.warning("%s speech recognition failed, using mock transcript: %s", self.speech.provider, e)
                error = str(e)
        transcript, confidence = self.mock.mock_transcript()
        return TranscriptResult(transcript, confidence, MOCK, error)
