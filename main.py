"""Replay a key sequence against a target text and print the result.

    python main.py 한글 "ㅎㅏㄴㄱㅡㄹ"
    python main.py 한글 "ㅎㅏㄴ<BS>ㄴㄱㅡㄹ" --mode precise
    python main.py "hi 한" "hi ㅎㅏㄴ" --virtual --key-interval-ms 150

The clock is simulated: key N arrives at N * key-interval-ms.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from hangul_typing.domain.enums import StrokeMode
from hangul_typing.services.settings_store import SettingsStore
from hangul_typing.services.typing_session import BACKSPACE, TypingSession

logger = logging.getLogger("hangul_typing")

BACKSPACE_TOKEN = "<BS>"


def parse_keys(raw: str) -> List[str]:
    """Split a replay string into key units; `<BS>` is one backspace."""
    keys: List[str] = []
    i = 0
    while i < len(raw):
        if raw.startswith(BACKSPACE_TOKEN, i):
            keys.append(BACKSPACE)
            i += len(BACKSPACE_TOKEN)
            continue
        keys.append(raw[i])
        i += 1
    return keys


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Replay Hangul typing input and report stats.")
    p.add_argument("target", help="text the user is asked to type")
    p.add_argument("keys", help="keys pressed, one unit per character; <BS> for backspace")
    p.add_argument("--virtual", action="store_true", help="route jamo through the virtual keyboard buffer")
    p.add_argument("--mode", choices=("flat", "precise"), default=None, help="stroke model (default from settings)")
    p.add_argument("--key-interval-ms", type=int, default=200)
    p.add_argument("--settings", default=None, help="settings.yaml path")
    p.add_argument("--log-level", default="WARNING")
    return p


def replay(session: TypingSession, keys: List[str], interval_ms: int) -> int:
    """Feed keys on the simulated clock; return the final timestamp."""
    now = 0
    session.start(session.target, now)
    for key in keys:
        now += interval_ms
        session.handle_key(key, now)
        session.tick(now)
        if session.is_finished:
            return now

    deadline = session.buffer_deadline_ms
    if deadline is not None:
        now = max(now, deadline)
        session.tick(now)
    return now


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = SettingsStore(args.settings).get_typing_settings()
    if args.mode == "flat":
        settings = replace(settings, stroke_mode=StrokeMode.FLAT_LENGTH)
    elif args.mode == "precise":
        settings = replace(settings, stroke_mode=StrokeMode.PRECISE_STROKE)

    session = TypingSession(args.target, settings=settings, virtual_keyboard=args.virtual)
    keys = parse_keys(args.keys)
    now = replay(session, keys, max(1, args.key_interval_ms))
    logger.info("Replayed %d keys against %r (finished=%s)", len(keys), args.target, session.is_finished)
    stats = session.stats(now)

    print(f"typed:  {session.typed_text}")
    if session.composing_text:
        print(f"composing: {session.composing_text}")
    for st in session.character_states:
        mark = "!" if st.has_error else " "
        print(f"  [{st.index:>2}] {st.target_char} {st.status.value:<9} {st.progress:5.2f} {mark}")

    hint = session.language_hint
    if hint is not None and hint.show_hint:
        print(f"hint:   {hint.message}")

    print(
        f"cpm={stats.cpm} raw_cpm={stats.raw_cpm} wpm={stats.wpm} raw_wpm={stats.raw_wpm} "
        f"accuracy={stats.accuracy} consistency={stats.consistency} "
        f"completion={stats.completion_rate} errors={stats.error_count} "
        f"time={stats.time_elapsed_sec:.2f}s mode={settings.stroke_mode.value}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
