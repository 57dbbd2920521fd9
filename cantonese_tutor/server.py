import json
import logging
import time
from pathlib import Path

from flask import Flask, Blueprint, current_app, jsonify, render_template, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from . import client_state
from .analytics import log_interaction, preview
from .cache import AudioCache
from .config import Config, configure_logging
from .errors import ApiError, MissingAudioData
from .llm import build_client
from .mock import MockResponder
from .orchestrator import ConversationOrchestrator
from .sessions import SessionStore
from .speech import AzureSpeech

logger = logging.getLogger(__name__)

# Load scenarios configuration
SCENARIOS_PATH = Path(__file__).parent / "data" / "scenarios.json"


def load_scenarios(path=SCENARIOS_PATH):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f).get("scenarios", [])


api = Blueprint('api', __name__, url_prefix='/api')


def _conversation() -> ConversationOrchestrator:
    return current_app.extensions['conversation']


def _track(event_type, data, session_id=None):
    log_interaction(current_app.config, event_type, data, session_id=session_id)


# ---------- Health/Scenario Endpoints ----------
@api.route('/health', methods=['GET'])
def health():
    return jsonify({
        'status': 'ok',
        'timestamp': int(time.time() * 1000),
        'version': current_app.config['APP_VERSION'],
        'ttsProvider': 'azure' if current_app.config['TTS_PROVIDER'] == 'azure' else 'mock',
    })


@api.route('/scenarios', methods=['GET'])
def list_scenarios():
    return jsonify({'scenarios': current_app.config['SCENARIOS']})


@api.route('/ui-transitions', methods=['GET'])
def ui_transitions():
    return jsonify(client_state.as_dict())


# ---------- Sessions ----------
@api.route('/session', methods=['POST'])
def create_session():
    session_id = _conversation().sessions.create_session()
    _track('session_start', {'live_sessions': len(_conversation().sessions)}, session_id=session_id)
    return jsonify({'sessionId': session_id})


@api.route('/session/<session_id>', methods=['DELETE'])
def close_session(session_id):
    return jsonify({'closed': _conversation().sessions.close_session(session_id)})


# ---------- Speech and conversation ----------
@api.route('/speech-to-text', methods=['POST'])
def speech_to_text():
    data = request.get_json(silent=True) or {}
    audio_data = data.get('audioData')
    if not audio_data or not isinstance(audio_data, str):
        raise MissingAudioData()

    result = _conversation().transcribe(audio_data)
    _track('speech_to_text', {
        'provider': result.provider,
        'fallback': bool(result.error),
        'transcript_length': len(result.transcript),
    }, session_id=data.get('sessionId'))
    return jsonify(result.to_dict())


@api.route('/recognize-and-respond', methods=['POST'])
def recognize_and_respond():
    data = request.get_json(silent=True) or {}
    session_id = data.get('sessionId')
    result = _conversation().exchange(session_id, data.get('userText', ''), data.get('scenario', ''))
    # The learner's (cleaned) turn sits just before the reply
    user_turn = result.history[-2]
    _track('turn_exchange', {
        'scenario': user_turn.scenario,
        'user_text': preview(user_turn.text),
        'reply_length': len(result.ai_text),
        'latency_ms': result.latency_ms,
        'tts_provider': result.tts_provider,
        'tts_fallback': result.tts_fallback,
        'tts_cached': result.tts_cached,
    }, session_id=session_id)
    return jsonify(result.to_dict())


# ---------- Error guard ----------
def handle_api_error(e):
    return jsonify(e.to_dict()), e.status


def handle_http_error(e):
    return jsonify({'error': (e.name or 'error').lower().replace(' ', '_'), 'message': e.description}), e.code


def handle_unexpected(e):
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify({'error': 'internal_error', 'message': 'Server error, please try again.'}), 500


def build_orchestrator(config) -> ConversationOrchestrator:
    speech = AzureSpeech.from_config(config) if config['TTS_PROVIDER'] == 'azure' else None
    return ConversationOrchestrator(
        sessions=SessionStore(max_turns=config['MAX_HISTORY_TURNS'],
                              max_sessions=config['MAX_SESSIONS'],
                              ttl_seconds=config['SESSION_TTL_SECONDS']),
        cache=AudioCache(max_entries=config['TTS_CACHE_SIZE']),
        mock=MockResponder(),
        chat=build_client(config),
        speech=speech,
        max_user_chars=config['MAX_USER_CHARS'],
        max_scenario_chars=config['MAX_SCENARIO_CHARS'],
        context_turns=config['CONTEXT_TURNS'],
        feedback_enabled=config['ENABLE_FEEDBACK'],
    )


def create_app(overrides=None, orchestrator=None) -> Flask:
    app = Flask(__name__, static_folder='static', template_folder='templates')
    app.config.from_object(Config)
    app.config.update(overrides or {})
    app.config.setdefault('SCENARIOS', load_scenarios())
    app.json.ensure_ascii = False

    configure_logging(app.config['LOG_LEVEL'])

    # CORS policy: only the configured client origin(s) may call the API.
    if app.config['CLIENT_ORIGINS']:
        CORS(app, resources={r"/api/*": {"origins": app.config['CLIENT_ORIGINS'],
                                         "methods": ["GET", "POST", "DELETE", "OPTIONS"],
                                         "allow_headers": ["Content-Type"]}},
             supports_credentials=True)

    app.extensions['conversation'] = orchestrator or build_orchestrator(app.config)

    app.register_blueprint(api)
    app.register_error_handler(ApiError, handle_api_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected)

    @app.route('/')
    def index():
        return render_template('index.html', version=app.config['APP_VERSION'])

    logger.info("Cantonese tutor ready: tts=%s llm=%s origins=%s",
                app.extensions['conversation'].configured_tts_provider,
                app.config['LLM_PROVIDER'], ','.join(app.config['CLIENT_ORIGINS']))
    return app
