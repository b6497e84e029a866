"""
Testes para o módulo streamfinder.core.interaction.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from streamfinder.core.browser_session import SessionConfig
from streamfinder.core.interaction import (
    AUTOPLAY_SCRIPT,
    CLICK_TIMEOUT,
    CLOSE_SELECTORS,
    PLAY_SELECTORS,
    try_autoplay,
    try_click_selectors,
    try_close_overlays,
    try_interact_all_frames,
    try_play,
)


def _element(fail=False, visible=True):
    el = MagicMock()
    el.is_visible = AsyncMock(return_value=visible)
    el.click = AsyncMock(side_effect=Exception("Element is not attached to the DOM") if fail else None)
    return el


def _frame(elements=None, detached=False, url="https://player.example.com/embed/1"):
    elements = elements or {}
    frame = MagicMock()
    frame.url = url
    frame.is_detached.return_value = detached

    def query_selector_all(selector):
        found = elements.get(selector)
        if isinstance(found, Exception):
            raise found
        if found is None:
            return []
        return found if isinstance(found, list) else [found]

    frame.query_selector_all = AsyncMock(side_effect=query_selector_all)
    frame.evaluate = AsyncMock(return_value=1)
    return frame


def _queried(frame):
    return [c.args[0] for c in frame.query_selector_all.await_args_list]


# ---------------------------------------------------------------------------
# try_click_selectors
# ---------------------------------------------------------------------------

def test_click_stops_at_first_successful_selector():
    b, c = _element(), _element()
    frame = _frame({"b": b, "c": c})

    assert asyncio.run(try_click_selectors(frame, ["a", "b", "c"])) is True

    b.click.assert_awaited_once_with(delay=50, timeout=CLICK_TIMEOUT)
    c.click.assert_not_awaited()
    assert _queried(frame) == ["a", "b"]


def test_click_failure_moves_to_next_selector():
    broken, ok = _element(fail=True), _element()
    frame = _frame({"a": broken, "b": ok})

    assert asyncio.run(try_click_selectors(frame, ["a", "b"])) is True
    ok.click.assert_awaited_once()


def test_lookup_failure_moves_to_next_selector():
    ok = _element()
    frame = _frame({"a": RuntimeError("Frame was detached"), "b": ok})

    assert asyncio.run(try_click_selectors(frame, ["a", "b"])) is True
    ok.click.assert_awaited_once()


def test_click_returns_false_when_nothing_matches():
    frame = _frame({"a": _element(fail=True)})
    assert asyncio.run(try_click_selectors(frame, ["a", "b", "c"])) is False


def test_hidden_match_is_skipped_without_clicking():
    hidden, shown = _element(visible=False), _element()
    frame = _frame({"[class*=close]": [hidden, shown]})

    assert asyncio.run(try_click_selectors(frame, ["[class*=close]"])) is True

    hidden.click.assert_not_awaited()
    shown.click.assert_awaited_once_with(delay=50, timeout=CLICK_TIMEOUT)


def test_selector_with_only_hidden_matches_falls_through():
    hidden, play = _element(visible=False), _element()
    frame = _frame({".vjs-modal-dialog-close-button": hidden, "#play": play})

    assert asyncio.run(try_click_selectors(frame, [".vjs-modal-dialog-close-button", "#play"])) is True

    hidden.click.assert_not_awaited()
    play.click.assert_awaited_once()


def test_visibility_check_failure_counts_as_hidden():
    gone = _element()
    gone.is_visible = AsyncMock(side_effect=Exception("Element is not attached to the DOM"))
    frame = _frame({"a": gone})

    assert asyncio.run(try_click_selectors(frame, ["a"])) is False
    gone.click.assert_not_awaited()


def test_click_timeout_is_shorter_than_command_timeout():
    assert CLICK_TIMEOUT < SessionConfig().command_timeout


def test_click_forwards_timeout():
    el = _element()
    frame = _frame({"a": el})
    asyncio.run(try_click_selectors(frame, ["a"], timeout=1000))
    el.click.assert_awaited_once_with(delay=50, timeout=1000)


# ---------------------------------------------------------------------------
# Sobreposições, play e autoplay
# ---------------------------------------------------------------------------

def test_close_overlays_follows_table_order():
    el = _element()
    frame = _frame({".jw-icon-close": el})

    asyncio.run(try_close_overlays(frame))

    assert _queried(frame) == list(CLOSE_SELECTORS[:3])
    el.click.assert_awaited_once()


def test_play_prefers_named_player_controls_over_generic_buttons():
    big_play, generic = _element(), _element()
    frame = _frame({
        ".vjs-big-play-button": big_play,
        "button, .btn, [role=button]": generic,
    })

    asyncio.run(try_play(frame))

    big_play.click.assert_awaited_once()
    generic.click.assert_not_awaited()


def test_play_always_forces_autoplay():
    frame = _frame({PLAY_SELECTORS[0]: _element()})
    asyncio.run(try_play(frame))
    frame.evaluate.assert_awaited_once_with(AUTOPLAY_SCRIPT)

    frame = _frame()
    asyncio.run(try_play(frame))
    frame.evaluate.assert_awaited_once_with(AUTOPLAY_SCRIPT)


def test_autoplay_script_mutes_and_plays_inline():
    assert "muted = true" in AUTOPLAY_SCRIPT
    assert "playsInline = true" in AUTOPLAY_SCRIPT
    assert ".play()" in AUTOPLAY_SCRIPT


def test_autoplay_swallows_cross_origin_failures():
    frame = _frame()
    frame.evaluate = AsyncMock(side_effect=Exception("Blocked a frame with origin"))
    asyncio.run(try_autoplay(frame))
    frame.evaluate.assert_awaited_once()


# ---------------------------------------------------------------------------
# try_interact_all_frames
# ---------------------------------------------------------------------------

def test_interact_visits_every_frame_close_then_play():
    main, child = _frame(url="https://site.example.com/"), _frame()
    page = MagicMock()
    page.frames = [main, child]

    assert asyncio.run(try_interact_all_frames(page)) == 2

    for frame in (main, child):
        queried = _queried(frame)
        assert queried[:len(CLOSE_SELECTORS)] == list(CLOSE_SELECTORS)
        assert queried[len(CLOSE_SELECTORS):] == list(PLAY_SELECTORS)
        frame.evaluate.assert_awaited_once()


def test_interact_ignores_frames_created_during_the_round():
    frames = []
    late = _frame(url="https://ads.example.com/late")
    main = _frame(url="https://site.example.com/")

    def spawn_frame(selector):
        if late not in frames:
            frames.append(late)
        return []

    main.query_selector_all = AsyncMock(side_effect=spawn_frame)
    frames.append(main)
    page = MagicMock()
    page.frames = frames

    assert asyncio.run(try_interact_all_frames(page)) == 1
    late.query_selector_all.assert_not_awaited()

    # Uma nova rodada enxerga o frame novo
    assert asyncio.run(try_interact_all_frames(page)) == 2
    late.query_selector_all.assert_awaited()


def test_interact_skips_detached_frames():
    gone = _frame(detached=True)
    live = _frame()
    page = MagicMock()
    page.frames = [gone, live]

    assert asyncio.run(try_interact_all_frames(page)) == 1
    gone.query_selector_all.assert_not_awaited()
    gone.evaluate.assert_not_awaited()


def test_interact_uses_custom_tables():
    frame = _frame()
    page = MagicMock()
    page.frames = [frame]

    asyncio.run(try_interact_all_frames(page, close_selectors=["#fechar"], play_selectors=["#play"]))

    assert _queried(frame) == ["#fechar", "#play"]
