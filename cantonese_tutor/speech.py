"""Azure Cognitive Services speech over REST: synthesis (SSML -> mp3) and short-audio recognition."""
import base64
import binascii
import logging
import re
from xml.sax.saxutils import escape, quoteattr

import httpx

from .errors import ProviderError

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = 'audio-16khz-128kbitrate-mono-mp3'
_DATA_URI = re.compile(r'^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]+)*?);base64,(?P<data>.*)$', re.S)


def to_data_uri(audio_bytes: bytes, mime: str = 'audio/mpeg') -> str:
    return f"data:{mime};base64,{base64.b64encode(audio_bytes).decode('ascii')}"


def parse_data_uri(value: str, default_mime: str = 'audio/webm'):
    """Split a base64 data URI (or bare base64) into (content type, bytes)."""
    value = (value or '').strip()
    m = _DATA_URI.match(value)
    if m:
        mime = (m.group('mime') or default_mime) + (m.group('params') or '')
        data = m.group('data')
    else:
        mime, data = default_mime, value
    try:
        return mime, base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ProviderError('audio payload is not valid base64') from e


def build_ssml(text: str, voice: str, rate: str = '0%', pitch: str = '0%', lang: str = 'zh-HK') -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        f'<speak version="1.0" xml:lang="{lang}">\n'
        f'  <voice name={quoteattr(voice)}>\n'
        f'    <prosody rate={quoteattr(rate)} pitch={quoteattr(pitch)}>{escape(text)}</prosody>\n'
        '  </voice>\n'
        '</speak>'
    )


class AzureSpeech:
    provider = 'azure'

    def __init__(self, key, region, voice='zh-HK-HiuMaanNeural', rate='0%', pitch='0%',
                 language='zh-HK', timeout=6.0, transport=None):
        self.key = key
        self.region = region
        self.voice = voice
        self.rate = rate
        self.pitch = pitch
        self.language = language
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config):
        return cls(
            key=config['AZURE_SPEECH_KEY'],
            region=config['AZURE_SPEECH_REGION'],
            voice=config['AZURE_TTS_VOICE'],
            rate=config['AZURE_TTS_RATE'],
            pitch=config['AZURE_TTS_PITCH'],
            language=config['AZURE_STT_LANGUAGE'],
            timeout=config['TTS_TIMEOUT_SECONDS'],
        )

    @property
    def token_endpoint(self):
        return f'https://{self.region}.api.cognitive.microsoft.com/sts/v1.0/issueToken'

    @property
    def tts_endpoint(self):
        return f'https://{self.region}.tts.speech.microsoft.com/cognitiveservices/v1'

    @property
    def stt_endpoint(self):
        return f'https://{self.region}.stt.speech.microsoft.com/speech/recognition/conversation/cognitiveservices/v1'

    def _client(self):
        if not self.key or not self.region:
            raise ProviderError('Azure speech key/region missing')
        return httpx.Client(timeout=self.timeout, transport=self.transport)

    def synthesize(self, text: str) -> str:
        """Return synthesized speech for `text` as an audio/mpeg data URI."""
        ssml = build_ssml(text, self.voice, self.rate, self.pitch, lang=self.language)
        try:
            with self._client() as http:
                token_res = http.post(self.token_endpoint, headers={'Ocp-Apim-Subscription-Key': self.key})
                if token_res.status_code != 200:
                    raise ProviderError(f'Azure token error {token_res.status_code}')
                tts_res = http.post(
                    self.tts_endpoint,
                    headers={
                        'Content-Type': 'application/ssml+xml',
                        'X-Microsoft-OutputFormat': OUTPUT_FORMAT,
                        'Authorization': f'Bearer {token_res.text}',
                    },
                    content=ssml.encode('utf-8'),
                )
        except httpx.TimeoutException as e:
            raise ProviderError('Azure TTS timed out') from e
        except httpx.HTTPError as e:
            raise ProviderError(f'Cannot reach Azure TTS: {e}') from e
        if tts_res.status_code != 200:
            raise ProviderError(f'Azure TTS error {tts_res.status_code}')
        if not tts_res.content:
            raise ProviderError('Azure TTS returned no audio')
        return to_data_uri(tts_res.content, 'audio/mpeg')

    def recognize(self, audio_data: str):
        """Transcribe a base64 audio payload. Returns (transcript, confidence)."""
        content_type, audio = parse_data_uri(audio_data)
        if not audio:
            raise ProviderError('audio payload is empty')
        try:
            with self._client() as http:
                res = http.post(
                    self.stt_endpoint,
                    params={'language': self.language, 'format': 'detailed'},
                    headers={
                        'Ocp-Apim-Subscription-Key': self.key,
                        'Content-Type': content_type,
                        'Accept': 'application/json',
                    },
                    content=audio,
                )
        except httpx.TimeoutException as e:
            raise ProviderError('Azure speech recognition timed out') from e
        except httpx.HTTPError as e:
            raise ProviderError(f'Cannot reach Azure speech recognition: {e}') from e
        if res.status_code != 200:
            raise ProviderError(f'Azure STT error {res.status_code}')
        try:
            payload = res.json()
        except ValueError as e:
            raise ProviderError('malformed Azure STT payload') from e
        if not isinstance(payload, dict):
            raise ProviderError('malformed Azure STT payload')

        status = payload.get('RecognitionStatus')
        if status != 'Success':
            raise ProviderError(f'Azure STT status {status}')
        nbest = payload.get('NBest') or [{}]
        best = nbest[0] if isinstance(nbest, list) else None
        if not isinstance(best, dict):
            raise ProviderError('malformed Azure STT payload')
        transcript = best.get('Display') or payload.get('DisplayText') or ''
        if not isinstance(transcript, str):
            raise ProviderError('malformed Azure STT payload')
        transcript = transcript.strip()
        if not transcript:
            raise ProviderError('Azure STT returned an empty transcript')
        try:
            confidence = float(best.get('Confidence', 1.0))
        except (TypeError, ValueError) as e:
            raise ProviderError('malformed Azure STT payload') from e
        return transcript, confidence
