from hangul_typing.domain.jamo_buffer import JamoBuffer


def test_complete_syllable_is_emitted_immediately():
    buf = JamoBuffer()
    assert buf.push("ㄱ", 0) == []
    assert buf.deadline_ms == 300
    assert buf.push("ㅏ", 50) == ["가"]
    assert buf.pending == ()
    assert buf.deadline_ms is None


def test_quiet_period_flush_on_poll():
    buf = JamoBuffer(quiet_period_ms=300)
    buf.push("ㄱ", 1000)
    assert buf.poll(1299) == []
    assert buf.pending == ("ㄱ",)
    assert buf.poll(1300) == ["ㄱ"]
    assert buf.deadline_ms is None


def test_each_jamo_pushes_deadline_out():
    buf = JamoBuffer(quiet_period_ms=300)
    buf.push("ㅏ", 0)
    buf.push("ㅓ", 200)
    assert buf.deadline_ms == 500
    assert buf.poll(400) == []


def test_non_jamo_flushes_then_passes_through():
    buf = JamoBuffer()
    buf.push("ㄱ", 0)
    assert buf.push(" ", 10) == ["ㄱ", " "]
    assert buf.pending == ()
    assert buf.push("a", 20) == ["a"]


def test_capacity_forces_flush():
    buf = JamoBuffer(capacity=4)
    assert buf.push("ㅏ", 0) == []
    assert buf.push("ㅓ", 1) == []
    assert buf.push("ㅗ", 2) == []
    assert buf.push("ㅜ", 3) == ["ㅏ", "ㅓ", "ㅗ", "ㅜ"]
    assert buf.deadline_ms is None


def test_small_capacity_flushes_unassemblable_pair():
    buf = JamoBuffer(capacity=2)
    buf.push("ㄱ", 0)
    assert buf.push("ㄴ", 1) == ["ㄱ", "ㄴ"]


def test_preview_and_pop():
    buf = JamoBuffer()
    buf.push("ㄱ", 0)
    assert buf.preview() == "ㄱ"
    assert buf.pop() == "ㄱ"
    assert buf.pop() is None
    assert buf.deadline_ms is None


def test_reset_cancels_deadline():
    buf = JamoBuffer()
    buf.push("ㄱ", 0)
    buf.reset()
    assert buf.pending == ()
    assert buf.deadline_ms is None
    assert buf.poll(10_000) == []
