#!/usr/bin/env python3
"""
Session Analytics Report

Summarizes the JSONL interaction records written when ENABLE_ANALYTICS is on.
Usage: python analyze_sessions.py [date_range]

Example: python analyze_sessions.py 20261001-20261007
"""

import json
import sys
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from pathlib import Path

from cantonese_tutor.config import Config


def load_analytics_data(analytics_dir, date_filter=None):
    """Load all analytics data from JSONL files"""
    data = []
    analytics_path = Path(analytics_dir)

    if not analytics_path.exists():
        print(f"Analytics directory not found: {analytics_path}")
        return data

    for file_path in sorted(analytics_path.glob("sessions_*.jsonl")):
        # Extract date from filename
        date_str = file_path.stem.replace('sessions_', '')

        # Apply date filter if specified
        if date_filter and date_str not in date_filter:
            continue

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                for line in f:
                    if line.strip():
                        data.append(json.loads(line))
        except (OSError, json.JSONDecodeError) as e:
            print(f"Error reading {file_path}: {e}")

    return data


def date_range_filter(date_range):
    """'20261001-20261003' -> ['20261001', '20261002', '20261003']; a single date passes through."""
    if '-' not in date_range:
        return [date_range]
    start_date, end_date = date_range.split('-')
    start = datetime.strptime(start_date, '%Y%m%d')
    end = datetime.strptime(end_date, '%Y%m%d')
    dates = []
    current = start
    while current <= end:
        dates.append(current.strftime('%Y%m%d'))
        current += timedelta(days=1)
    return dates


def summarize_turns(data):
    """Aggregate turn_exchange events: volume, scenarios, providers, latency."""
    turns = [e for e in data if e['event_type'] == 'turn_exchange']
    per_session = defaultdict(int)
    for e in turns:
        per_session[e['session_id']] += 1

    latencies = [e['data'].get('latency_ms', 0) for e in turns]
    fallbacks = sum(1 for e in turns if e['data'].get('tts_fallback'))
    cached = sum(1 for e in turns if e['data'].get('tts_cached'))
    return {
        'turns': len(turns),
        'sessions': len(per_session),
        'avg_turns_per_session': (len(turns) / len(per_session)) if per_session else 0.0,
        'scenarios': Counter(e['data'].get('scenario') or '(none)' for e in turns),
        'tts_providers': Counter(e['data'].get('tts_provider', 'mock') for e in turns),
        'tts_fallback_rate': (fallbacks / len(turns)) if turns else 0.0,
        'tts_cache_hit_rate': (cached / len(turns)) if turns else 0.0,
        'latency_avg_ms': (sum(latencies) / len(latencies)) if latencies else 0.0,
        'latency_max_ms': max(latencies) if latencies else 0,
    }


def summarize_speech(data):
    events = [e for e in data if e['event_type'] == 'speech_to_text']
    fallbacks = sum(1 for e in events if e['data'].get('fallback'))
    return {
        'requests': len(events),
        'providers': Counter(e['data'].get('provider', 'mock') for e in events),
        'fallback_rate': (fallbacks / len(events)) if events else 0.0,
    }


def print_report(data):
    print("\n" + "=" * 50)
    print("CONVERSATION PRACTICE REPORT")
    print("=" * 50)

    if not data:
        print("No data available for analysis.")
        return

    timestamps = [datetime.fromisoformat(e['timestamp'].replace('Z', '+00:00')) for e in data]
    print(f"Data period: {min(timestamps):%Y-%m-%d} to {max(timestamps):%Y-%m-%d}")
    print(f"Total events: {len(data)}")
    print(f"Sessions started: {sum(1 for e in data if e['event_type'] == 'session_start')}")

    turns = summarize_turns(data)
    print("\n=== TURN EXCHANGES ===")
    print(f"Turns: {turns['turns']} across {turns['sessions']} sessions "
          f"({turns['avg_turns_per_session']:.1f} per session)")
    print("Scenario usage:")
    for scenario, count in turns['scenarios'].most_common():
        print(f"  {scenario}: {count}")
    print(f"TTS providers: {dict(turns['tts_providers'])}")
    print(f"TTS fallback rate: {turns['tts_fallback_rate'] * 100:.1f}%")
    print(f"TTS cache hit rate: {turns['tts_cache_hit_rate'] * 100:.1f}%")
    print(f"Latency: avg {turns['latency_avg_ms']:.0f} ms, max {turns['latency_max_ms']} ms")

    speech = summarize_speech(data)
    print("\n=== SPEECH TO TEXT ===")
    if not speech['requests']:
        print("No speech-to-text requests found.")
    else:
        print(f"Requests: {speech['requests']}, providers: {dict(speech['providers'])}")
        print(f"Fallback rate: {speech['fallback_rate'] * 100:.1f}%")


def main(argv=None):
    """Main analysis function"""
    argv = sys.argv[1:] if argv is None else argv
    analytics_dir = Config.ANALYTICS_DIR
    date_filter = date_range_filter(argv[0]) if argv else None

    data = load_analytics_data(analytics_dir, date_filter)
    print(f"Loaded {len(data)} events from {analytics_dir}")
    print_report(data)


if __name__ == "__main__":
    main()
