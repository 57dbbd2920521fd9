import pytest

from cantonese_tutor.client_state import (CONTROLS, ERROR, EVENTS, IDLE, LISTENING, PROCESSING, SPEAKING, STATES,
                                          TRANSITIONS, as_dict, controls_for, run, transition)


def test_voice_turn_cycle():
    assert run(['press', 'release', 'audio_start', 'audio_end']) == [IDLE, LISTENING, PROCESSING, SPEAKING, IDLE]


def test_typed_turn_without_audio():
    assert run(['submit', 'reply']) == [IDLE, PROCESSING, IDLE]


def test_error_then_reset():
    assert run(['submit', 'fail', 'reset']) == [IDLE, PROCESSING, ERROR, IDLE]


def test_cancel_waiting_returns_to_idle():
    assert transition(PROCESSING, 'cancel') == IDLE


def test_permission_denied_while_listening():
    assert transition(LISTENING, 'fail') == ERROR


def test_no_overlapping_playback_or_recording_while_speaking():
    assert transition(SPEAKING, 'audio_start') == SPEAKING
    assert transition(SPEAKING, 'press') == SPEAKING
    assert controls_for(SPEAKING)['replay'] is False


def test_unknown_events_keep_state():
    for state in STATES:
        assert transition(state, 'bogus') == state


def test_unknown_state_is_rejected():
    with pytest.raises(ValueError):
        transition('dancing', 'press')


def test_table_only_uses_known_states_and_events():
    assert set(TRANSITIONS) == set(STATES) == set(CONTROLS)
    for targets in TRANSITIONS.values():
        assert set(targets) <= set(EVENTS)
        assert set(targets.values()) <= set(STATES)


def test_only_processing_can_cancel_waiting():
    assert [s for s in STATES if controls_for(s)['cancel']] == [PROCESSING]


def test_controls_are_copies():
    controls_for(IDLE)['record'] = False
    assert CONTROLS[IDLE]['record'] is True


def test_as_dict_is_serializable_shape():
    table = as_dict()
    assert table['initial'] == IDLE
    assert set(table['labels']) == set(STATES)
    assert table['timers']['slowNoticeAfter'] > 0
