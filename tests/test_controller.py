import pytest

PySide6 = pytest.importorskip("PySide6")  # noqa: F401

from PySide6.QtCore import Qt

from watermark_editor.editor.controller import EditorController, normalize_color
from watermark_editor.errors import RemovalError
from watermark_editor.ops.invoker import GET_IMAGE_INFO, REMOVE_WATERMARK, REMOVE_WATERMARK_BATCH
from watermark_editor.ops.removal import RemovalMode, RemovalResult
from watermark_editor.region import DragMode, Region


@pytest.fixture
def controller(invoker):
    return EditorController(invoker)


def test_normalize_color() -> None:
    assert normalize_color("#ABC") == "#aabbcc"
    assert normalize_color(" #00FF7f ") == "#00ff7f"
    assert normalize_color("red") is None
    assert normalize_color("#12345g") is None
    assert normalize_color("") is None


def test_load_applies_default_region_and_transform(controller, fake_pool, load_into, make_image_info) -> None:
    load_into(controller, make_image_info())

    fn, kwargs, _ = fake_pool.submits[0]
    assert kwargs == {"path": "photo.png", "max_width": 560, "max_height": 420}
    assert controller.state.region == Region(680, 560, 100, 30)
    assert controller.state.transform.scale == pytest.approx(0.7)
    assert controller.display_size() == (560, 420)
    assert controller.state.loading is False


def test_unsupported_format_is_reported_without_loading(controller, fake_pool, qtbot) -> None:
    with qtbot.waitSignal(controller.error_occurred, timeout=1000) as blocker:
        assert controller.load_image("notes.txt") is None
    assert "Unsupported" in blocker.args[0]
    assert fake_pool.submits == []


def test_failed_load_reports_error_and_keeps_previous_image(
    controller, fake_pool, load_into, make_image_info, qtbot
) -> None:
    first = make_image_info("a.png")
    load_into(controller, first)

    controller.load_image("broken.png")
    _, _, future = fake_pool.last
    with qtbot.waitSignal(controller.error_occurred, timeout=2000) as blocker:
        future.set_exception(ValueError("decode failed"))
    assert "decode failed" in blocker.args[0]
    assert controller.state.image is first
    assert controller.state.loading is False


def test_superseded_load_result_is_dropped(controller, fake_pool, qtbot, make_image_info) -> None:
    controller.load_image("a.png")
    _, _, first = fake_pool.last
    controller.load_image("b.png")
    _, _, second = fake_pool.last

    assert first.cancelled()
    with qtbot.waitSignal(controller.state.imageChanged, timeout=2000):
        second.set_result(make_image_info("b.png"))
    assert controller.state.image.path == "b.png"

    # A completion for a ticket nobody waits on changes nothing.
    region = controller.state.region
    controller._on_operation_finished(9999, GET_IMAGE_INFO, make_image_info("c.png"), None)
    assert controller.state.image.path == "b.png"
    assert controller.state.region == region


def test_pointer_drag_resizes_region(controller, load_into, make_image_info) -> None:
    load_into(controller, make_image_info())

    # Region (680, 560, 100, 30) shows at (476, 392, 70, 21) with scale 0.7.
    assert controller.cursor_mode_at(546, 413) is DragMode.SE
    assert controller.pointer_press(546, 413)
    assert controller.drag_session.mode is DragMode.SE

    controller.pointer_move(511, 413)
    assert controller.state.region == Region(680, 560, 50, 30)

    controller.pointer_release()
    assert not controller.dragging
    controller.pointer_move(400, 300)
    assert controller.state.region == Region(680, 560, 50, 30)


def test_pointer_leave_ends_drag(controller, load_into, make_image_info) -> None:
    load_into(controller, make_image_info())
    assert controller.pointer_press(100, 100)
    assert controller.drag_session.mode is DragMode.CREATE
    controller.pointer_leave()
    assert not controller.dragging


def test_pointer_ignored_without_image(controller) -> None:
    assert not controller.pointer_press(10, 10)
    assert controller.cursor_mode_at(10, 10) is None
    assert controller.scene() is None


def test_sampler_is_noop_in_blur_mode(controller, load_into, make_image_info) -> None:
    load_into(controller, make_image_info(rgb=(0, 0, 255)))
    assert controller.state.mode is RemovalMode.BLUR

    assert controller.sample_color_at(10, 10) is None
    assert not controller.pointer_press(10, 10, Qt.MouseButton.RightButton)
    assert controller.state.fill_color == "#ffffff"


def test_right_click_samples_color_in_fill_mode(controller, load_into, make_image_info) -> None:
    load_into(controller, make_image_info(rgb=(0, 0, 255)))
    controller.set_mode(RemovalMode.FILL)

    assert controller.pointer_press(10, 10, Qt.MouseButton.RightButton)
    assert controller.state.fill_color == "#0000ff"
    assert not controller.dragging


def test_set_fill_color_validates_input(controller) -> None:
    assert controller.set_fill_color("#ABC")
    assert controller.state.fill_color == "#aabbcc"
    assert not controller.set_fill_color("nope")
    assert controller.state.fill_color == "#aabbcc"
    assert controller.pick_palette_color("#F5F5F5")
    assert controller.state.fill_color == "#f5f5f5"


def test_submit_builds_request_from_state(controller, fake_pool, load_into, make_image_info) -> None:
    load_into(controller, make_image_info())
    controller.set_mode("fill")
    controller.set_fill_color("#00ff00")

    ticket = controller.submit()
    assert ticket is not None
    fn, kwargs, _ = fake_pool.last
    assert fn is controller._invoker._operations[REMOVE_WATERMARK]
    assert kwargs == {
        "input_path": "photo.png",
        "x": 680,
        "y": 560,
        "width": 100,
        "height": 30,
        "color": "#00ff00",
        "mode": "fill",
    }
    assert controller.state.busy


def test_busy_locks_input(controller, load_into, make_image_info) -> None:
    load_into(controller, make_image_info())
    controller.submit()

    assert not controller.pointer_press(546, 413)
    assert controller.cursor_mode_at(546, 413) is None
    controller.set_mode(RemovalMode.FILL)
    assert controller.state.mode is RemovalMode.BLUR
    assert not controller.set_fill_color("#000000")
    assert controller.submit() is None


def test_successful_submission_sets_result(controller, fake_pool, load_into, make_image_info, qtbot) -> None:
    load_into(controller, make_image_info())
    controller.submit()
    _, _, future = fake_pool.last

    result = RemovalResult(success=True, output_path="photo_no_watermark.png", message="Saved")
    with qtbot.waitSignal(controller.state.resultChanged, timeout=2000):
        future.set_result(result)
    assert controller.state.result == result
    assert not controller.state.busy


def test_failed_submission_leaves_editor_state_untouched(
    controller, fake_pool, load_into, make_image_info, qtbot
) -> None:
    load_into(controller, make_image_info())
    controller.set_mode(RemovalMode.FILL)
    controller.set_fill_color("#123456")
    region = controller.state.region

    controller.submit()
    _, _, future = fake_pool.last
    with qtbot.waitSignal(controller.state.resultChanged, timeout=2000):
        future.set_exception(RemovalError("ffmpeg exploded"))

    result = controller.state.result
    assert result.success is False
    assert "ffmpeg exploded" in result.message
    assert controller.state.region == region
    assert controller.state.mode is RemovalMode.FILL
    assert controller.state.fill_color == "#123456"
    assert not controller.state.busy


def test_cancel_submission_drops_late_result(controller, fake_pool, load_into, make_image_info) -> None:
    load_into(controller, make_image_info())
    controller.submit()
    _, _, future = fake_pool.last

    controller.cancel_submission()
    assert not controller.state.busy
    assert future.cancelled()
    assert controller.state.result is None


def test_new_image_supersedes_pending_submission(controller, fake_pool, load_into, make_image_info) -> None:
    load_into(controller, make_image_info("a.png"))
    controller.submit()
    _, _, pending = fake_pool.last

    load_into(controller, make_image_info("b.png", 400, 300))
    assert pending.cancelled()
    assert not controller.state.busy
    assert controller.state.result is None
    assert controller.state.region == Region(280, 260, 100, 30)


def test_batch_submission_summarizes_results(controller, fake_pool, load_into, make_image_info, qtbot) -> None:
    load_into(controller, make_image_info())
    controller.submit_batch(["a.png", "b.png"])
    fn, kwargs, future = fake_pool.last
    assert fn is controller._invoker._operations[REMOVE_WATERMARK_BATCH]
    assert kwargs["input_paths"] == ["a.png", "b.png"]
    assert "input_path" not in kwargs

    results = [
        RemovalResult(True, "a_no_watermark.png", "Saved"),
        RemovalResult(False, "", "b.png: boom"),
    ]
    with qtbot.waitSignal(controller.batch_finished, timeout=2000) as blocker:
        future.set_result(results)
    assert blocker.args[0] == results
    assert controller.state.result.message == "1/2 files processed"
    assert controller.state.result.success is False


def test_clear_image_resets_session(controller, load_into, make_image_info) -> None:
    load_into(controller, make_image_info())
    controller.clear_image()
    assert controller.state.image is None
    assert controller.state.region is None
    assert controller.display_size() is None


def test_second_press_does_not_replace_active_drag(controller, load_into, make_image_info) -> None:
    load_into(controller, make_image_info())
    assert controller.pointer_press(546, 413)
    session = controller.drag_session

    assert not controller.pointer_press(100, 100)
    assert controller.drag_session is session
    assert controller.drag_session.mode is DragMode.SE
    assert controller.drag_session.anchor_region == Region(680, 560, 100, 30)


def test_unknown_mode_is_ignored(controller) -> None:
    controller.set_mode(RemovalMode.FILL)
    controller.set_mode("smudge")
    assert controller.state.mode is RemovalMode.FILL
