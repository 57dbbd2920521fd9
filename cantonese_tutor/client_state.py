"""Frontend playback/recording state machine.

The transition table lives here and is served to the browser, which only
renders whatever state the table yields. Unknown (state, event) pairs are
ignored: the state stays put.
"""

IDLE = 'idle'
LISTENING = 'listening'
PROCESSING = 'processing'
SPEAKING = 'speaking'
ERROR = 'error'

STATES = (IDLE, LISTENING, PROCESSING, SPEAKING, ERROR)

EVENTS = (
    'press',        # hold-to-speak pressed
    'release',      # hold-to-speak released with a recording
    'submit',       # typed text sent
    'reply',        # exchange answered without playable audio
    'audio_start',  # playback began (reply or replay)
    'audio_end',    # playback finished
    'fail',         # permission denied, network or playback error
    'reset',        # error notice timed out or dismissed
    'cancel',       # user gave up waiting, or the recording was too short
)

TRANSITIONS = {
    IDLE: {'press': LISTENING, 'submit': PROCESSING, 'audio_start': SPEAKING, 'fail': ERROR},
    LISTENING: {'release': PROCESSING, 'cancel': IDLE, 'fail': ERROR},
    PROCESSING: {'reply': IDLE, 'audio_start': SPEAKING, 'cancel': IDLE, 'fail': ERROR},
    SPEAKING: {'audio_end': IDLE, 'fail': ERROR},
    ERROR: {'reset': IDLE, 'press': LISTENING, 'submit': PROCESSING},
}

# Which controls are usable in each state
CONTROLS = {
    IDLE: {'record': True, 'send': True, 'replay': True, 'newSession': True, 'cancel': False},
    LISTENING: {'record': True, 'send': False, 'replay': False, 'newSession': False, 'cancel': False},
    PROCESSING: {'record': False, 'send': False, 'replay': False, 'newSession': False, 'cancel': True},
    SPEAKING: {'record': False, 'send': False, 'replay': False, 'newSession': True, 'cancel': False},
    ERROR: {'record': True, 'send': True, 'replay': True, 'newSession': True, 'cancel': False},
}

STATUS_LABELS = {
    IDLE: '準備就緒',
    LISTENING: '錄音中，放開即發送',
    PROCESSING: '處理中...',
    SPEAKING: '導師講緊嘢...',
    ERROR: '出錯了，請再試一次',
}

# Client timers (milliseconds)
TIMERS = {
    'slowNoticeAfter': 8000,
    'errorResetAfter': 3000,
}


def transition(state: str, event: str) -> str:
    if state not in TRANSITIONS:
        raise ValueError(f'unknown state: {state!r}')
    return TRANSITIONS[state].get(event, state)


def controls_for(state: str) -> dict:
    return dict(CONTROLS[state])


def run(events, state=IDLE):
    """Fold a sequence of events over the table; returns the list of states visited."""
    visited = [state]
    for event in events:
        state = transition(state, event)
        visited.append(state)
    return visited


def as_dict():
    return {
        'states': list(STATES),
        'events': list(EVENTS),
        'initial': IDLE,
        'transitions': TRANSITIONS,
        'controls': CONTROLS,
        'labels': STATUS_LABELS,
        'timers': TIMERS,
    }
