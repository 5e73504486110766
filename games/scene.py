import os
from enum import Enum

import numpy as np
import pygame

# Headless unless the caller picked a driver; main() lifts this default.
_HEADLESS_DEFAULT = "SDL_VIDEODRIVER" not in os.environ
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")


def use_display_driver():
    """Drop the headless default so the next display init opens a real window."""
    if _HEADLESS_DEFAULT and os.environ.get("SDL_VIDEODRIVER") == "dummy":
        del os.environ["SDL_VIDEODRIVER"]


class Shape(Enum):
    RECT = "rect"
    OVAL = "oval"
    LABEL = "label"


class SceneObject:
    """A filled shape or text label registered with a Scene.

    Position is the top-left corner of the bounding box, kept as floats so
    sub-pixel velocities accumulate; drawing truncates to pixels.
    """

    def __init__(self, shape, x, y, width, height, color, tag=None):
        self.shape = shape
        self.x = float(x)
        self.y = float(y)
        self.width = float(width)
        self.height = float(height)
        self.color = color
        self.tag = tag
        self.text = ""
        self.font = None

    def move(self, dx, dy):
        self.x += float(dx)
        self.y += float(dy)

    def set_location(self, x, y):
        self.x = float(x)
        self.y = float(y)

    def set_text(self, text):
        # Labels are sized by their rendered text
        self.text = text
        self.width, self.height = (float(v) for v in self.font.size(text))

    def contains(self, x, y):
        if self.shape == Shape.OVAL:
            rx, ry = self.width / 2, self.height / 2
            if rx <= 0 or ry <= 0:
                return False
            dx = (x - (self.x + rx)) / rx
            dy = (y - (self.y + ry)) / ry
            return dx * dx + dy * dy <= 1.0
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height

    def rect(self):
        return pygame.Rect(int(self.x), int(self.y), int(self.width), int(self.height))

    def draw(self, surface):
        if self.shape == Shape.RECT:
            pygame.draw.rect(surface, self.color, self.rect())
        elif self.shape == Shape.OVAL:
            pygame.draw.ellipse(surface, self.color, self.rect())
        elif self.text:
            text_surf = self.font.render(self.text, True, self.color)
            surface.blit(text_surf, (int(self.x), int(self.y)))


class Scene:
    """Ordered set of scene objects drawn onto an off-screen surface.

    Objects added later sit on top of earlier ones, both for drawing and for
    hit-testing.
    """

    def __init__(self, width, height, background=(255, 255, 255)):
        pygame.init()
        pygame.font.init()
        self.width = width
        self.height = height
        self.background = background
        self.surface = pygame.Surface((width, height))
        self.objects = []

    def __contains__(self, obj):
        return any(o is obj for o in self.objects)

    def __len__(self):
        return len(self.objects)

    def add(self, obj):
        self.objects.append(obj)
        return obj

    def remove(self, obj):
        self.objects = [o for o in self.objects if o is not obj]

    def new_rect(self, x, y, width, height, color, tag=None):
        return self.add(SceneObject(Shape.RECT, x, y, width, height, color, tag))

    def new_oval(self, x, y, width, height, color, tag=None):
        return self.add(SceneObject(Shape.OVAL, x, y, width, height, color, tag))

    def new_label(self, text, font, color, tag=None):
        label = SceneObject(Shape.LABEL, 0, 0, 0, 0, color, tag)
        label.font = font
        label.set_text(text)
        return self.add(label)

    def get_object_at(self, x, y, exclude=None):
        for obj in reversed(self.objects):
            if obj is exclude:
                continue
            if obj.contains(x, y):
                return obj
        return None

    def render(self):
        self.surface.fill(self.background)
        for obj in self.objects:
            obj.draw(self.surface)

        arr = pygame.surfarray.array3d(self.surface)
        return np.transpose(arr, (1, 0, 2)).astype(np.uint8)


# --- Input and timing ---

def poll_mouse_move():
    """Return the x of the latest pending mouse move, or None if there is none.

    Clicks made during play are dropped so they cannot satisfy a later
    wait_for_click().
    """
    pygame.event.clear((pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP))
    events = pygame.event.get(pygame.MOUSEMOTION)
    if not events:
        return None
    return events[-1].pos[0]


def wait_for_click():
    """Block until a mouse click. Returns False if the window was closed instead."""
    while True:
        event = pygame.event.wait()
        if event.type == pygame.QUIT:
            return False
        if event.type == pygame.MOUSEBUTTONDOWN:
            return True


def quit_requested():
    return bool(pygame.event.get(pygame.QUIT))


def pause(ms):
    pygame.time.wait(ms)
