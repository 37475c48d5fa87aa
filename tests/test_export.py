"""Tests for headless rendering and export."""

import os

from PIL import Image

from blobmask.config import OverlayConfig
from blobmask.export import compose_over, export_animation, render_frames


def test_render_frames_count_and_size():
    frames = list(render_frames(OverlayConfig(), 200, 150, frames=3))
    assert len(frames) == 3
    assert all(f.size == (200, 150) and f.mode == "RGBA" for f in frames)


def test_render_frames_with_density():
    frames = list(render_frames(OverlayConfig(), 100, 80, pixel_density=2.0, frames=1))
    assert frames[0].size == (200, 160)


def test_replayed_strokes_are_erased():
    strokes = [[(560, 400), (640, 400)]]
    (frame,) = render_frames(OverlayConfig(), 1000, 800, frames=1, strokes=strokes)
    assert frame.getpixel((600, 400))[3] == 0
    assert frame.getpixel((600, 300))[3] == 255


def test_compose_over_background():
    mask = Image.new("RGBA", (4, 4), (255, 255, 255, 0))
    bg = Image.new("RGB", (8, 8), (10, 20, 30))
    out = compose_over(mask, bg)
    assert out.mode == "RGB"
    assert out.size == (4, 4)
    assert out.getpixel((1, 1)) == (10, 20, 30)


def test_export_png_sequence(tmp_path):
    out_dir = tmp_path / "frames"
    seen = []
    n = export_animation(str(out_dir), OverlayConfig(), 120, 90, frames=3, fps=10, progress=seen.append)
    assert n == 3
    assert sorted(os.listdir(out_dir)) == ["frame_0000.png", "frame_0001.png", "frame_0002.png"]
    assert seen[-1] == 100


def test_export_gif(tmp_path):
    path = tmp_path / "mask.gif"
    assert export_animation(str(path), OverlayConfig(), 120, 90, frames=2) == 2
    with Image.open(path) as img:
        assert img.format == "GIF"
        assert img.size == (120, 90)
