import numpy as np
import pygame
import pytest

from games.scene import Scene, Shape, poll_mouse_move, wait_for_click, quit_requested


@pytest.fixture
def scene():
    scene = Scene(100, 80)
    pygame.event.clear()
    yield scene
    pygame.quit()


def test_rect_contains_half_open_bounds(scene):
    rect = scene.new_rect(2, 25, 36, 12, (255, 0, 0))
    assert rect.contains(2, 25)
    assert rect.contains(37.9, 36.9)
    assert not rect.contains(38, 25)
    assert not rect.contains(2, 37)
    assert not rect.contains(1.9, 30)


def test_oval_excludes_bounding_box_corners(scene):
    ball = scene.new_oval(40, 30, 20, 20, (0, 0, 0))
    assert ball.contains(50, 40)
    for corner in ((40, 30), (60, 30), (40, 50), (60, 50)):
        assert not ball.contains(*corner)


def test_topmost_object_wins(scene):
    below = scene.new_rect(0, 0, 50, 50, (255, 0, 0), tag="below")
    above = scene.new_rect(10, 10, 10, 10, (0, 0, 255), tag="above")
    assert scene.get_object_at(15, 15) is above
    assert scene.get_object_at(5, 5) is below
    assert scene.get_object_at(15, 15, exclude=above) is below
    assert scene.get_object_at(90, 70) is None


def test_removed_object_is_gone(scene):
    rect = scene.new_rect(0, 0, 10, 10, (255, 0, 0))
    assert rect in scene
    scene.remove(rect)
    assert rect not in scene
    assert len(scene) == 0
    assert scene.get_object_at(5, 5) is None


def test_move_and_set_location(scene):
    obj = scene.new_rect(10, 10, 5, 5, (0, 0, 0))
    obj.move(2.5, -1)
    assert (obj.x, obj.y) == (12.5, 9.0)
    obj.set_location(0, 0)
    assert (obj.x, obj.y) == (0.0, 0.0)


def test_label_is_sized_by_text(scene):
    font = pygame.font.Font(None, 36)
    label = scene.new_label("0", font, (128, 128, 128))
    assert label.shape == Shape.LABEL
    narrow = label.width
    assert narrow > 0 and label.height > 0

    label.set_text("100")
    assert label.text == "100"
    assert label.width > narrow
    assert label.contains(label.x + 1, label.y + 1)


def test_render_draws_objects_over_background(scene):
    scene.new_rect(0, 0, 10, 10, (255, 0, 0))
    obs = scene.render()
    assert obs.shape == (80, 100, 3)
    assert obs.dtype == np.uint8
    assert obs[5, 5].tolist() == [255, 0, 0]
    assert obs[50, 50].tolist() == [255, 255, 255]


def test_poll_mouse_move_returns_latest_x(scene):
    assert poll_mouse_move() is None
    for x in (10, 42):
        pygame.event.post(pygame.event.Event(pygame.MOUSEMOTION, pos=(x, 5), rel=(0, 0), buttons=(0, 0, 0)))
    assert poll_mouse_move() == 42
    assert poll_mouse_move() is None


def test_wait_for_click(scene):
    pygame.event.post(pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=(1, 1), button=1))
    assert wait_for_click() is True


def test_wait_for_click_returns_false_on_quit(scene):
    pygame.event.post(pygame.event.Event(pygame.QUIT))
    assert wait_for_click() is False


def test_quit_requested(scene):
    assert not quit_requested()
    pygame.event.post(pygame.event.Event(pygame.QUIT))
    assert quit_requested()


def test_poll_mouse_move_drops_clicks_made_during_play(scene):
    pygame.event.post(pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=(1, 1), button=1))
    pygame.event.post(pygame.event.Event(pygame.MOUSEMOTION, pos=(30, 5), rel=(0, 0), buttons=(0, 0, 0)))

    # one tick of input handling, as main() does it
    assert not quit_requested()
    assert poll_mouse_move() == 30
    assert not pygame.event.peek(pygame.MOUSEBUTTONDOWN)


def test_stale_click_does_not_release_the_next_wait(scene):
    pygame.event.post(pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=(1, 1), button=1))
    poll_mouse_move()

    # only the window close is left, so the wait must not see a click
    pygame.event.post(pygame.event.Event(pygame.QUIT))
    assert wait_for_click() is False
