import os
import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


# ---------- Centralized Config ----------
class Config:
    ENV = os.getenv('ENV', 'development')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    PORT = int(os.getenv('PORT', '4000'))
    CLIENT_ORIGINS = [o.strip() for o in (os.getenv('CLIENT_ORIGIN') or 'http://localhost:5173').split(',') if o.strip()]
    APP_VERSION = os.getenv('APP_VERSION', '0.1.0-prototype')

    # Speech (TTS + ASR) provider: "mock" or "azure"
    TTS_PROVIDER = (os.getenv('TTS_PROVIDER') or 'mock').strip().lower()
    AZURE_SPEECH_KEY = os.getenv('AZURE_SPEECH_KEY')
    AZURE_SPEECH_REGION = os.getenv('AZURE_SPEECH_REGION')
    AZURE_TTS_VOICE = os.getenv('AZURE_TTS_VOICE', 'zh-HK-HiuMaanNeural')
    AZURE_TTS_RATE = os.getenv('AZURE_TTS_RATE', '0%')
    AZURE_TTS_PITCH = os.getenv('AZURE_TTS_PITCH', '0%')
    AZURE_STT_LANGUAGE = os.getenv('AZURE_STT_LANGUAGE', 'zh-HK')
    TTS_TIMEOUT_SECONDS = float(os.getenv('TTS_TIMEOUT_SECONDS', '6'))
    TTS_CACHE_SIZE = int(os.getenv('TTS_CACHE_SIZE', '50'))

    # Chat completion provider: "mock", "openai" or "azure"
    LLM_PROVIDER = (os.getenv('LLM_PROVIDER') or 'mock').strip().lower()
    LLM_BASE_URL = os.getenv('LLM_BASE_URL')
    LLM_API_KEY = os.getenv('LLM_API_KEY')
    LLM_API_VERSION = os.getenv('LLM_API_VERSION', '2024-06-01')
    LLM_MODEL = os.getenv('LLM_MODEL', 'gpt-4o-mini')
    LLM_TIMEOUT_SECONDS = float(os.getenv('LLM_TIMEOUT_SECONDS', '8'))
    ENABLE_FEEDBACK = _env_bool('ENABLE_FEEDBACK', 'true')

    # Conversation limits
    MAX_HISTORY_TURNS = int(os.getenv('MAX_HISTORY_TURNS', '20'))
    CONTEXT_TURNS = int(os.getenv('CONTEXT_TURNS', '10'))
    MAX_USER_CHARS = int(os.getenv('MAX_USER_CHARS', '400'))
    MAX_SCENARIO_CHARS = int(os.getenv('MAX_SCENARIO_CHARS', '120'))
    MAX_SESSIONS = int(os.getenv('MAX_SESSIONS', '1000'))
    SESSION_TTL_SECONDS = int(os.getenv('SESSION_TTL_SECONDS', '3600'))
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_AUDIO_BYTES', str(2 * 1024 * 1024)))

    # Data collection settings
    ENABLE_ANALYTICS = _env_bool('ENABLE_ANALYTICS', 'false')
    ANALYTICS_SAMPLE_RATE = float(os.getenv('ANALYTICS_SAMPLE_RATE', '1.0'))  # 1.0 = 100%
    ANALYTICS_DIR = os.getenv('ANALYTICS_DIR', 'analytics')


def configure_logging(level_name: str) -> None:
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO),
                        format='%(asctime)s %(levelname)s %(message)s')
