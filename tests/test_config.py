"""Tests for config loading and clamping."""

import json

from blobmask.config import MAX_BLUR_PX, MAX_ERASER_RADIUS, OverlayConfig, config_from_dict, load_config
from blobmask.core import events
from blobmask.core.events import EventTarget, PointerEvent
from blobmask.core.overlay import Host, Overlay
from blobmask.core.scheduler import ManualScheduler
from blobmask.core.viewport import ViewportState


def test_defaults():
    cfg = OverlayConfig()
    assert cfg.blob_count == 4
    assert cfg.blur_px == 5.0
    assert cfg.eraser_radius == 40.0
    assert cfg.points_per_blob == 60
    assert cfg.mask_rgba == (1.0, 1.0, 1.0, 1.0)


def test_no_path_gives_defaults():
    assert load_config(None) == OverlayConfig()


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(str(tmp_path / "nope.json")) == OverlayConfig()


def test_malformed_file_gives_defaults(tmp_path):
    p = tmp_path / "bad.json"
    p.write_text("{not json", encoding="utf-8")
    assert load_config(str(p)) == OverlayConfig()


def test_non_object_gives_defaults(tmp_path):
    p = tmp_path / "list.json"
    p.write_text("[1, 2]", encoding="utf-8")
    assert load_config(str(p)) == OverlayConfig()


def test_load_values(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text(json.dumps({"blur_px": 8, "eraser_radius": 12.5, "mask_color": "#102030"}), encoding="utf-8")
    cfg = load_config(str(p))
    assert cfg.blur_px == 8.0
    assert cfg.eraser_radius == 12.5
    assert cfg.mask_color == (16, 32, 48)


def test_out_of_range_values_are_clamped():
    cfg = config_from_dict({"blob_count": 9, "points_per_blob": 1, "blur_px": -2, "eraser_radius": 0})
    assert cfg.blob_count == 4
    assert cfg.points_per_blob == 3
    assert cfg.blur_px == 0.0
    assert cfg.eraser_radius == 0.5


def test_bad_values_and_unknown_keys_are_dropped():
    cfg = config_from_dict({"blur_px": "soft", "colour": "red", "mask_color": [0, 0, 0]})
    assert cfg.blur_px == 5.0
    assert cfg.mask_color == (0, 0, 0)


def test_short_hex_colour():
    assert config_from_dict({"mask_color": "#fff"}).mask_color == (255, 255, 255)


def test_non_finite_values_fall_back_to_defaults(tmp_path):
    p = tmp_path / "inf.json"
    p.write_text('{"blur_px": Infinity, "eraser_radius": Infinity, "blob_count": NaN}', encoding="utf-8")
    cfg = load_config(str(p))
    assert cfg.blur_px == 5.0
    assert cfg.eraser_radius == 40.0
    assert cfg.blob_count == 4


def test_huge_values_are_capped():
    cfg = config_from_dict({"blur_px": 1e12, "eraser_radius": 1e12})
    assert cfg.blur_px == MAX_BLUR_PX
    assert cfg.eraser_radius == MAX_ERASER_RADIUS


def test_non_finite_config_renders_and_erases(tmp_path):
    p = tmp_path / "inf.json"
    p.write_text('{"blur_px": Infinity, "eraser_radius": Infinity}', encoding="utf-8")
    host = Host(
        surface_events=EventTarget(),
        window_events=EventTarget(),
        scheduler=ManualScheduler(),
        metrics=lambda: ViewportState(400, 300, 1.0),
    )
    overlay = Overlay(load_config(str(p)))
    assert overlay.mount(host)
    host.scheduler.tick(0.0)
    host.surface_events.dispatch(events.POINTER_DOWN, PointerEvent(200, 150))
    host.surface_events.dispatch(events.POINTER_MOVE, PointerEvent(210, 150))
    assert overlay.viewport.accumulation.alpha_at(205, 150) == 1.0
    assert overlay.loop.frames_rendered == 1
    overlay.unmount()
