import pytest

from hangul_typing.domain.enums import CharStatus, StrokeMode, TypingSettings
from hangul_typing.services.typing_session import BACKSPACE, TypingSession


def test_jamo_by_jamo_session_completes(make_session, type_keys, completed):
    s = make_session("한글")
    s.start("한글", 0)

    s.handle_key("ㅎ", 100)
    assert s.composing_text == "ㅎ"
    assert s.current_index == 0
    assert s.character_states[0].status is CharStatus.CURRENT
    assert s.character_states[0].progress == pytest.approx(1 / 3)

    type_keys(s, ["ㅏ", "ㄴ", "ㄱ", "ㅡ", "ㄹ"], start_ms=100)

    assert s.typed_text == "한글"
    assert s.is_finished
    assert len(completed) == 1
    stats = completed[0]
    assert stats.accuracy == 100.0
    assert stats.completion_rate == 100.0
    assert stats.error_count == 0
    assert stats.total_chars == 2
    assert len(s.keystrokes) == 6
    assert all(k.correct for k in s.keystrokes)
    assert [k.delta_from_previous_ms for k in s.keystrokes] == [0, 100, 100, 100, 100, 100]


def test_syllable_commits_as_soon_as_it_matches(make_session):
    s = make_session("한글")
    s.start("한글", 0)
    for i, key in enumerate(["ㅎ", "ㅏ", "ㄴ"]):
        s.handle_key(key, 100 * (i + 1))
    assert s.typed_text == "한"
    assert s.composing_text == ""
    assert s.character_states[0].status is CharStatus.CORRECT
    assert s.character_states[1].status is CharStatus.CURRENT


def test_wrong_vowel_then_backspace_recovers(make_session, type_keys, completed):
    s = make_session("가")
    s.start("가", 0)

    type_keys(s, ["ㄱ", "ㅓ"])
    assert s.composing_text == "거"
    assert not s.keystrokes[-1].correct
    assert s.character_states[0].has_error

    s.handle_key(BACKSPACE, 300)
    assert s.composing_text == "ㄱ"

    s.handle_key("ㅏ", 400)
    assert s.typed_text == "가"
    assert s.character_states[0].status is CharStatus.CORRECT
    assert completed[0].error_count == 1


def test_rejected_jamo_commits_and_moves_on(make_session, type_keys):
    s = make_session("가나")
    s.start("가나", 0)
    type_keys(s, ["ㄱ", "ㅓ", "ㅏ"])

    # ㅓ+ㅏ don't merge: 거 is committed, the lone ㅏ lands on the next slot
    assert s.typed_text == "거ㅏ"
    assert s.is_finished
    assert [st.status for st in s.character_states] == [CharStatus.INCORRECT, CharStatus.INCORRECT]


def test_backspaced_mistake_leaves_no_error_flag(make_session, type_keys, completed):
    s = make_session("한")
    s.start("한", 0)
    type_keys(s, ["ㅎ", "ㅓ", BACKSPACE, "ㅏ", "ㄴ"])

    st = s.character_states[0]
    assert st.status is CharStatus.CORRECT
    assert st.current_composition == "한"
    assert not st.has_error
    # The wrong keystroke still counts against the stats
    assert completed[0].error_count == 1


def test_vowel_after_final_moves_consonant_to_next_syllable(make_session, type_keys):
    s = make_session("가난")
    s.start("가난", 0)
    type_keys(s, ["ㄱ", "ㅓ", "ㄴ", "ㅏ"])

    assert s.typed_text == "거"
    assert s.composing_text == "나"
    assert s.current_index == 1
    states = s.character_states
    assert states[0].status is CharStatus.INCORRECT
    assert states[1].status is CharStatus.CURRENT
    assert states[1].progress == pytest.approx(2 / 3)
    assert not states[1].has_error
    assert s.keystrokes[-1].correct


def test_vowel_after_compound_final_moves_only_second_part(make_session, type_keys):
    s = make_session("달가")
    s.start("달가", 0)
    type_keys(s, ["ㄷ", "ㅓ", "ㄹ", "ㄱ", "ㅏ"])

    assert s.typed_text == "덜가"
    assert s.is_finished
    states = s.character_states
    assert states[0].status is CharStatus.INCORRECT
    assert states[1].status is CharStatus.CORRECT
    assert not states[1].has_error


def test_space_commits_partial_syllable(make_session, type_keys):
    s = make_session("한 a")
    s.start("한 a", 0)
    type_keys(s, ["ㅎ", "ㅏ", " "])

    assert s.typed_text == "하 "
    assert s.current_index == 2
    states = s.character_states
    assert states[0].status is CharStatus.INCORRECT
    assert states[0].progress == pytest.approx(2 / 3)
    assert states[1].status is CharStatus.CORRECT
    assert states[2].status is CharStatus.CURRENT


def test_backspace_over_committed_char_clears_its_error(make_session, type_keys, completed):
    s = make_session("ab")
    s.start("ab", 0)

    s.handle_key("x", 100)
    assert s.character_states[0].has_error

    s.handle_key(BACKSPACE, 200)
    assert s.typed_text == ""
    assert s.current_index == 0
    assert not s.character_states[0].has_error
    assert s.character_states[0].status is CharStatus.CURRENT

    type_keys(s, ["a", "b"], start_ms=200)
    assert s.is_finished
    assert completed[0].accuracy == 100.0
    assert completed[0].error_count == 1
    # Backspace is not a keystroke
    assert len(s.keystrokes) == 3


def test_backspace_unwinds_composition_before_committed_text(make_session, type_keys):
    s = make_session("닭")
    s.start("닭", 0)
    type_keys(s, ["ㄷ", "ㅏ", "ㄹ"])
    assert s.composing_text == "달"

    s.handle_key(BACKSPACE, 400)
    assert s.composing_text == "다"
    assert s.typed_text == ""


def test_virtual_keyboard_buffers_until_syllable_forms(make_session, completed):
    s = make_session("가나", virtual=True)
    s.start("가나", 0)

    s.handle_key("ㄱ", 100)
    assert s.typed_text == ""
    assert s.composing_text == "ㄱ"
    assert s.character_states[0].progress == pytest.approx(0.5)

    s.handle_key("ㅏ", 200)
    assert s.typed_text == "가"

    s.handle_key("ㄴ", 300)
    s.handle_key("ㅏ", 350)
    assert s.typed_text == "가나"
    assert len(completed) == 1
    assert completed[0].accuracy == 100.0


def test_virtual_keyboard_flushes_after_quiet_period(make_session):
    s = make_session("ㄱ", virtual=True)
    s.start("ㄱ", 0)

    s.handle_key("ㄱ", 100)
    assert s.buffer_deadline_ms == 400

    s.tick(399)
    assert s.typed_text == ""
    assert not s.is_finished

    s.tick(400)
    assert s.typed_text == "ㄱ"
    assert s.is_finished
    assert s.buffer_deadline_ms is None


def test_virtual_keyboard_backspace_drops_buffered_jamo(make_session):
    s = make_session("가", virtual=True)
    s.start("가", 0)
    s.handle_key("ㄱ", 100)
    s.handle_key(BACKSPACE, 150)
    assert s.composing_text == ""
    assert s.buffer_deadline_ms is None


def test_native_ime_composition_events(make_session, completed):
    s = make_session("한")
    s.start("한", 0)

    s.composition_start()
    s.composition_update("하")
    assert s.composing_text == "하"
    assert s.character_states[0].current_composition == "하"
    assert s.character_states[0].progress == pytest.approx(2 / 3)

    s.composition_end("한", 500)
    assert s.typed_text == "한"
    assert s.composing_text == ""
    assert len(completed) == 1
    assert len(s.keystrokes) == 1


def test_reset_cancels_pending_buffer_deadline(make_session):
    s = make_session("가", virtual=True)
    s.start("가", 0)
    s.handle_key("ㄱ", 100)
    assert s.buffer_deadline_ms == 400

    s.reset()
    assert s.buffer_deadline_ms is None
    assert s.composing_text == ""

    s.tick(1_000)
    assert s.typed_text == ""
    assert not s.is_finished


def test_reset_clears_everything(make_session, type_keys):
    s = make_session("ab")
    s.start("ab", 0)
    type_keys(s, ["a"])

    s.reset()
    assert s.typed_text == ""
    assert s.keystrokes == ()
    assert not s.is_finished
    assert s.character_states[0].status is CharStatus.CURRENT

    s.reset("새글")
    assert s.target == "새글"
    assert len(s.character_states) == 2


def test_final_stats_are_frozen_after_finish(make_session):
    s = make_session("a")
    s.start("a", 0)
    s.handle_key("a", 100)

    assert s.is_finished
    assert s.tick(10_000) is s.final_stats

    # Further input is ignored
    s.handle_key("b", 10_100)
    assert len(s.keystrokes) == 1


def test_complete_callback_fires_once(make_session, completed):
    s = make_session("a")
    s.start("a", 0)
    s.handle_key("a", 100)
    s.tick(200)
    s.tick(300)
    assert len(completed) == 1


def test_failing_complete_callback_is_logged(caplog):
    def boom(_stats):
        raise RuntimeError("ui gone")

    s = TypingSession("a", on_complete=boom)
    s.start("a", 0)
    s.handle_key("a", 100)

    assert s.is_finished
    assert "on_complete" in caplog.text


def test_language_hint_for_wrong_input_mode(make_session):
    s = make_session("한글")
    s.start("한글", 0)
    s.handle_key("g", 100)

    hint = s.language_hint
    assert hint is not None
    assert hint.show_hint
    assert "Korean" in hint.message


def test_stats_before_any_input(make_session):
    s = make_session("한글")
    stats = s.tick(5_000)
    assert stats.cpm == 0
    assert stats.accuracy == 100.0
    assert stats.completion_rate == 0.0


def test_precise_stroke_mode_from_settings(type_keys, completed):
    s = TypingSession(
        "한글",
        settings=TypingSettings(stroke_mode=StrokeMode.PRECISE_STROKE),
        on_complete=completed.append,
    )
    s.start("한글", 0)
    type_keys(s, ["ㅎ", "ㅏ", "ㄴ", "ㄱ", "ㅡ", "ㄹ"])

    # 6 strokes between the first keystroke (100) and the last (600)
    assert completed[0].raw_cpm == 720
