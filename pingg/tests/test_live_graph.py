"""Tests for the live graph display, driven through a pipe instead of a terminal."""

import threading

import pytest
from prompt_toolkit.application import create_app_session
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from pingg.automation.handoff import CancelToken
from pingg.automation.stats_window import RollingWindow
from pingg.display.live_graph import DisplayError, LiveGraphSession, render_chart, render_stats


@pytest.fixture
def snapshot():
    window = RollingWindow(100)
    for v in (30.0, 30.0, 10.0, 50.0, 20.0):
        window.add(v)
    return window.snapshot()


@pytest.fixture
def pipe_session():
    """Yield a pipe input inside an app session with a dummy output."""
    with create_pipe_input() as inp:
        with create_app_session(input=inp, output=DummyOutput()):
            yield inp


def test_render_stats(snapshot):
    assert render_stats(snapshot) == "Avg: 14.00ms Max: 50.00ms Min: 20.00ms"


def test_render_stats_before_first_snapshot():
    assert render_stats(None) == "Waiting for replies..."


def test_render_chart_plain(snapshot):
    chart = render_chart(snapshot.series, height=5, color=False)
    lines = chart.splitlines()

    assert len(lines) > 5
    assert "50.00" in lines[0]
    assert "10.00" in lines[-1]
    assert "\x1b[" not in chart


def test_render_chart_colored(snapshot):
    assert "\x1b[" in render_chart(snapshot.series, height=5)


def test_render_chart_keeps_newest_points_when_narrow():
    full = render_chart([[1.0, 2.0, 3.0, 99.0]], height=4, color=False)
    narrow = render_chart([[1.0, 2.0, 3.0, 99.0]], height=4, width=2, color=False)

    assert "99.00" in narrow
    assert " 1.00" not in narrow
    assert " 1.00" in full


def test_render_chart_empty():
    assert render_chart([[]], height=5) == ""


def test_quit_key_cancels_token_and_returns(pipe_session, snapshot):
    token = CancelToken()
    with LiveGraphSession("1.1.1.1", token) as display:
        display.update(snapshot)
        pipe_session.send_text("q")
        display.run()

    assert token.cancelled


def test_ctrl_c_quits(pipe_session):
    token = CancelToken()
    with LiveGraphSession("1.1.1.1", token) as display:
        pipe_session.send_text("\x03")
        display.run()

    assert token.cancelled


def test_cancel_before_run_returns_immediately(pipe_session):
    token = CancelToken()
    token.cancel()
    with LiveGraphSession("1.1.1.1", token) as display:
        display.run()


def test_cancel_from_another_thread_stops_render_loop(pipe_session, snapshot):
    token = CancelToken()
    with LiveGraphSession("1.1.1.1", token) as display:
        display.update(snapshot)
        timer = threading.Timer(0.3, token.cancel)
        timer.start()
        display.run()
        timer.join()

    assert token.cancelled


def test_run_without_open_session():
    with pytest.raises(DisplayError):
        LiveGraphSession("1.1.1.1", CancelToken()).run()
