"""Offline stand-ins for the chat and speech providers."""
import random

# Very small Cantonese prompt seeds for mock responses.
PROMPT_SEEDS = [
    '你講得好流利，繼續分享多啲！',
    '可以再講詳細啲嗎？',
    '明白，你仲有咩想法？',
    '不如講下你嘅日常？',
    '好啊，我哋可以轉去另一個話題。',
]

POLITE_OPENERS = [
    '多謝分享！',
    '明白喇！',
    '好嘢！',
    '正啊！',
]

EMPTY_PROMPT = '你可以先講講你想練習嘅內容。'
FEEDBACK_WITH_TEXT = '（模擬）聲調不錯，試下放慢少少再講一次。'
FEEDBACK_WITHOUT_TEXT = '請試下講一句你想練習嘅句子。'

# 44-byte WAV header with an empty data chunk: valid, silent.
SILENT_AUDIO = 'data:audio/wav;base64,UklGRiQAAABXQVZFZm10IBAAAAABAAEAQB8AAEAfAAABAAgAZGF0YQAAAAA='

MOCK_TRANSCRIPT = '（模擬語音）你好，我想練習廣東話'
MOCK_CONFIDENCE = 0.5


class MockResponder:
    def __init__(self, rng=None, seed=None):
        self.rng = rng or random.Random(seed)

    def mock_reply(self, user_text: str, scenario: str) -> str:
        opener = self.rng.choice(POLITE_OPENERS)
        seed = self.rng.choice(PROMPT_SEEDS)
        scenario_hint = f'（情景：{scenario}）' if scenario else ''
        echo = f'你啱啱講：「{user_text}」' if user_text else EMPTY_PROMPT
        # Collapse the gap left by an empty hint
        return ' '.join(part for part in (opener, echo, scenario_hint, seed) if part)

    def mock_feedback(self, user_text: str) -> str:
        return FEEDBACK_WITH_TEXT if user_text else FEEDBACK_WITHOUT_TEXT

    def mock_audio(self) -> str:
        return SILENT_AUDIO

    def mock_transcript(self):
        return MOCK_TRANSCRIPT, MOCK_CONFIDENCE
