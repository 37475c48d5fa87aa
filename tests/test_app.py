"""Tests for the Qt frame scheduler and the command line parser."""

import os
import time

import numpy as np
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
pytest.importorskip("PySide6.QtWidgets")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from blobmask.app import QtFrameScheduler, _parse_stroke, build_parser, qimage_from_array  # noqa: E402


@pytest.fixture(scope="module")
def qt_app():
    return QCoreApplication.instance() or QCoreApplication([])


def _spin(app, until, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not until() and time.monotonic() < deadline:
        app.processEvents()
        time.sleep(0.001)


# --- Frame scheduler ---

def test_requested_frame_fires_with_timestamp(qt_app):
    sched = QtFrameScheduler(interval_ms=1)
    seen = []
    sched.request_frame(seen.append)
    _spin(qt_app, lambda: seen)
    assert len(seen) == 1
    assert seen[0] >= 0.0
    assert sched.pending == 0


def test_cancel_before_fire(qt_app):
    sched = QtFrameScheduler(interval_ms=1)
    seen = []
    handle = sched.request_frame(seen.append)
    sched.cancel_frame(handle)
    assert sched.pending == 0
    _spin(qt_app, lambda: False, timeout=0.05)
    assert seen == []


def test_cancel_within_batch_skips_callback(qt_app):
    sched = QtFrameScheduler(interval_ms=1)
    seen = []
    handles = {}

    def first(t):
        seen.append("first")
        sched.cancel_frame(handles["second"])

    handles["first"] = sched.request_frame(first)
    handles["second"] = sched.request_frame(lambda t: seen.append("second"))
    sched._fire()
    assert seen == ["first"]


def test_frame_requested_in_batch_runs_next_fire(qt_app):
    sched = QtFrameScheduler(interval_ms=1)
    seen = []

    def again(t):
        seen.append(t)
        if len(seen) == 1:
            sched.request_frame(again)

    sched.request_frame(again)
    sched._fire()
    assert len(seen) == 1
    assert sched.pending == 1
    sched._fire()
    assert len(seen) == 2


# --- Painting helpers ---

def test_qimage_wraps_array():
    arr = np.zeros((3, 5, 4), dtype=np.uint8)
    arr[1, 2] = (255, 0, 0, 255)
    qimg, data = qimage_from_array(arr)
    assert (qimg.width(), qimg.height()) == (5, 3)
    assert len(data) == 3 * 5 * 4
    assert qimg.pixelColor(2, 1).red() == 255


# --- Command line ---

def test_parse_stroke():
    assert _parse_stroke("1,2 3.5,4") == [(1.0, 2.0), (3.5, 4.0)]


def test_export_arguments():
    args = build_parser().parse_args(
        ["export", "out.gif", "--frames", "5", "--density", "2", "--stroke", "0,0 10,10"]
    )
    assert args.command == "export"
    assert args.output == "out.gif"
    assert args.frames == 5
    assert args.density == 2.0
    assert args.stroke == [[(0.0, 0.0), (10.0, 10.0)]]


def test_run_is_default_command():
    args = build_parser().parse_args([])
    assert args.command is None
