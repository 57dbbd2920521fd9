import json
import logging
import random
from datetime import datetime, timezone
from pathlib import Path

from .config import Config

logger = logging.getLogger(__name__)


def log_interaction(config, event_type, data, session_id=None, rng=random):
    """Append one JSONL analytics record for later review with analyze_sessions.py"""
    if not config.get('ENABLE_ANALYTICS'):
        return False

    # Sample rate check
    if rng.random() > config.get('ANALYTICS_SAMPLE_RATE', 1.0):
        return False

    try:
        analytics_dir = Path(config.get('ANALYTICS_DIR') or Config.ANALYTICS_DIR)
        analytics_dir.mkdir(parents=True, exist_ok=True)

        now = datetime.now(timezone.utc)
        log_entry = {
            'timestamp': now.isoformat().replace('+00:00', 'Z'),
            'event_type': event_type,
            'session_id': session_id or 'anonymous',
            'data': data,
        }

        # Write to daily log file
        log_file = analytics_dir / f"sessions_{now.strftime('%Y%m%d')}.jsonl"
        with open(log_file, 'a', encoding='utf-8') as f:
            f.write(json.dumps(log_entry, ensure_ascii=False) + '\n')
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.warning(f"Analytics logging failed: {e}")
        return False


def preview(text, limit=100):
    """Truncate learner text for privacy before it is logged."""
    text = text or ''
    return text[:limit] + '...' if len(text) > limit else text
