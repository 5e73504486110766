import logging
import os
from collections import namedtuple
from enum import Enum

import gymnasium as gym
from gymnasium.spaces import MultiDiscrete
import numpy as np
import pygame

from games.scene import (
    Scene, use_display_driver, poll_mouse_move, wait_for_click, quit_requested, pause
)

logger = logging.getLogger(__name__)


class Phase(Enum):
    AWAITING_START = "awaiting_start"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class HitKind(Enum):
    NONE = "none"
    PADDLE = "paddle"
    LABEL = "label"
    BRICK = "brick"


# index is the (row, col) of a brick, None for everything else
Collision = namedtuple("Collision", ["kind", "index"])
NO_COLLISION = Collision(HitKind.NONE, None)


class GameEnv(gym.Env):
    metadata = {"render_modes": ["rgb_array"], "render_fps": 200}

    # Must be a short, user-facing control string:
    user_guide = "Controls: move the mouse to steer the paddle. Click to serve the ball."

    # Must be a short, user-facing description of the game:
    game_description = (
        "Classic Breakout. Bounce the ball off your paddle to clear a 5x10 wall of bricks. "
        "Each brick is worth one point and you have 3 lives."
    )

    # Should frames auto-advance or wait for user input?
    auto_advance = True

    # --- Constants ---
    WIDTH, HEIGHT = 400, 600
    ROWS, COLS = 5, 10
    RADIUS = 10
    PADDLE_WIDTH, PADDLE_HEIGHT = 90, 6
    PADDLE_OFFSET = 30  # gap between paddle and bottom edge
    BRICK_WIDTH, BRICK_HEIGHT = 36, 12
    BRICK_SPACING_X, BRICK_SPACING_Y = 40, 16
    BRICK_ORIGIN = (2, 25)
    LIVES = 3
    PAUSE_MS = 5
    FONT_SIZE = 36

    # Colors
    COLOR_BG = (255, 255, 255)
    COLOR_BALL = (0, 0, 0)
    COLOR_PADDLE = (0, 0, 0)
    COLOR_LABEL = (128, 128, 128)
    BRICK_COLORS = [
        (255, 0, 0),    # Red
        (0, 0, 255),    # Blue
        (255, 200, 0),  # Orange
        (0, 255, 0),    # Green
        (255, 255, 0),  # Yellow
    ]

    def __init__(self, render_mode="rgb_array"):
        super().__init__()
        self.render_mode = render_mode

        self.observation_space = gym.spaces.Box(
            low=0, high=255, shape=(self.HEIGHT, self.WIDTH, 3), dtype=np.uint8
        )
        # [mouse moved, mouse x, clicked]
        self.action_space = MultiDiscrete([2, self.WIDTH, 2])

        pygame.init()
        pygame.font.init()
        self.font = pygame.font.Font(None, self.FONT_SIZE)

        # State variables (initialized in reset)
        self.scene = None
        self.ball = None
        self.paddle = None
        self.label = None
        self.bricks = None
        self.brick_present = None
        self.ball_vel = None
        self.steps = 0
        self.score = 0
        self.lives = 0
        self.bricks_remaining = 0
        self.phase = Phase.AWAITING_START
        self.awaiting_serve = False
        self.last_collision = NO_COLLISION

        self.reset()
        # self.validate_implementation() # Optional: call for self-check

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)

        self.scene = Scene(self.WIDTH, self.HEIGHT, self.COLOR_BG)
        self._init_bricks()
        self.ball = self._init_ball()
        self.paddle = self._init_paddle()
        self.label = self._init_scoreboard()

        self.steps = 0
        self.score = 0
        self.lives = self.LIVES
        self.bricks_remaining = self.ROWS * self.COLS
        self.phase = Phase.AWAITING_START
        self.awaiting_serve = False
        self.last_collision = NO_COLLISION

        self._update_scoreboard(self.score)

        # Always starts moving right and down
        self.ball_vel = np.array(
            [self.np_random.uniform(1, 3), self.np_random.uniform(1, 3)], dtype=np.float64
        )

        return self._get_observation(), self._get_info()

    # --- Scene setup ---

    def _init_bricks(self):
        self.bricks = [[None] * self.COLS for _ in range(self.ROWS)]
        self.brick_present = np.ones((self.ROWS, self.COLS), dtype=bool)
        x0, y0 = self.BRICK_ORIGIN
        for row in range(self.ROWS):
            color = self.BRICK_COLORS[row % len(self.BRICK_COLORS)]
            for col in range(self.COLS):
                self.bricks[row][col] = self.scene.new_rect(
                    x0 + col * self.BRICK_SPACING_X,
                    y0 + row * self.BRICK_SPACING_Y,
                    self.BRICK_WIDTH,
                    self.BRICK_HEIGHT,
                    color,
                    tag=Collision(HitKind.BRICK, (row, col)),
                )

    def _init_ball(self):
        return self.scene.new_oval(
            self.WIDTH / 2 - self.RADIUS,
            self.HEIGHT / 2 - self.RADIUS,
            2 * self.RADIUS,
            2 * self.RADIUS,
            self.COLOR_BALL,
        )

    def _init_paddle(self):
        return self.scene.new_rect(
            (self.WIDTH - self.PADDLE_WIDTH) / 2,
            self.HEIGHT - self.PADDLE_HEIGHT - self.PADDLE_OFFSET,
            self.PADDLE_WIDTH,
            self.PADDLE_HEIGHT,
            self.COLOR_PADDLE,
            tag=Collision(HitKind.PADDLE, None),
        )

    def _init_scoreboard(self):
        return self.scene.new_label("0", self.font, self.COLOR_LABEL, tag=Collision(HitKind.LABEL, None))

    def _update_scoreboard(self, points):
        self.label.set_text(str(points))
        x = (self.scene.width - self.label.width) / 2
        y = (self.scene.height - self.label.height) / 2
        self.label.set_location(x, y)

    # --- Game loop ---

    def step(self, action):
        moved = int(action[0]) == 1
        mouse_x = int(action[1])
        clicked = int(action[2]) == 1

        score_before = self.score
        self.last_collision = NO_COLLISION

        if self.phase == Phase.AWAITING_START:
            if clicked:
                self.phase = Phase.PLAYING
        elif self.phase == Phase.PLAYING:
            if self.awaiting_serve:
                if clicked:
                    self._serve()
            else:
                self.last_collision = self._tick(moved, mouse_x)
                self._check_termination()

        self.steps += 1
        reward = float(self.score - score_before)
        terminated = self.phase == Phase.GAME_OVER

        return (
            self._get_observation(),
            reward,
            terminated,
            False,
            self._get_info()
        )

    def _tick(self, moved, mouse_x):
        # Recentre the paddle under the cursor, x-axis only, no clamping
        if moved:
            dx = mouse_x - self.paddle.x - self.PADDLE_WIDTH / 2
            self.paddle.move(dx, 0)

        self.ball.move(self.ball_vel[0], self.ball_vel[1])

        collision = self._detect_collision()
        if collision.kind == HitKind.PADDLE:
            self.ball_vel[1] *= -1
        elif collision.kind == HitKind.LABEL:
            # Pass straight through the scoreboard; skip the boundary checks
            return collision
        elif collision.kind == HitKind.BRICK:
            self._destroy_brick(collision.index)

        self._bounce_off_walls()
        self._check_floor()
        return collision

    def _detect_collision(self):
        """Hit-test the ball's bounding-box corners: TL, TR, BL, BR; first hit wins.

        The corners lie outside the ball's ellipse, so the ball never finds
        itself.
        """
        x, y = self.ball.x, self.ball.y
        size = 2 * self.RADIUS
        for cx, cy in ((x, y), (x + size, y), (x, y + size), (x + size, y + size)):
            obj = self.scene.get_object_at(cx, cy, exclude=self.ball)
            if obj is not None and obj.tag is not None:
                return obj.tag
        return NO_COLLISION

    def _destroy_brick(self, index):
        row, col = index
        self.score += 1
        self._update_scoreboard(self.score)
        self.ball_vel[1] *= -1
        self.bricks_remaining -= 1
        self.brick_present[row, col] = False
        self.scene.remove(self.bricks[row][col])
        logger.debug("Brick (%d, %d) destroyed, %d remaining", row, col, self.bricks_remaining)

    def _bounce_off_walls(self):
        # X and Y are checked independently; both may flip in the same tick
        if self.ball.x + 2 * self.RADIUS >= self.WIDTH or self.ball.x <= 0:
            self.ball_vel[0] *= -1
        if self.ball.y <= 0:
            self.ball_vel[1] *= -1

    def _check_floor(self):
        if self.ball.y + 2 * self.RADIUS < self.HEIGHT:
            return
        self.lives -= 1
        logger.info("Ball lost, %d lives left", self.lives)
        if self.lives > 0:
            self.awaiting_serve = True

    def _serve(self):
        # Velocity is kept from before the lost life
        self.ball.set_location(self.WIDTH / 2 - self.RADIUS, self.HEIGHT / 2 - self.RADIUS)
        self.awaiting_serve = False
        logger.debug("Ball served with velocity (%.2f, %.2f)", self.ball_vel[0], self.ball_vel[1])

    def _check_termination(self):
        if self.lives == 0 or self.bricks_remaining == 0:
            self.phase = Phase.GAME_OVER
            logger.info("Game over: score %d, lives %d, bricks %d", self.score, self.lives, self.bricks_remaining)

    # --- Rendering ---

    def _get_observation(self):
        return self.scene.render()

    def render(self):
        return self._get_observation()

    def _get_info(self):
        return {
            "score": self.score,
            "steps": self.steps,
            "lives": self.lives,
            "bricks_remaining": self.bricks_remaining,
            "phase": self.phase.value,
            "collision": self.last_collision.kind.value,
        }

    @property
    def waiting_for_click(self):
        return self.phase == Phase.AWAITING_START or (self.phase == Phase.PLAYING and self.awaiting_serve)

    def close(self):
        pygame.quit()

    def validate_implementation(self):
        '''
        Self-check of spaces, reset and step. Safe to call on a constructed env.
        '''
        # Test action space
        assert self.action_space.shape == (3,)
        assert self.action_space.nvec.tolist() == [2, self.WIDTH, 2]

        # Test observation space
        test_obs = self._get_observation()
        assert test_obs.shape == (self.HEIGHT, self.WIDTH, 3)
        assert test_obs.dtype == np.uint8

        # Test reset
        obs, info = self.reset()
        assert obs.shape == (self.HEIGHT, self.WIDTH, 3)
        assert isinstance(info, dict)
        assert info["bricks_remaining"] == self.ROWS * self.COLS

        # Test step
        test_action = self.action_space.sample()
        obs, reward, term, trunc, info = self.step(test_action)
        assert obs.shape == (self.HEIGHT, self.WIDTH, 3)
        assert isinstance(reward, (int, float))
        assert isinstance(term, bool)
        assert trunc is False
        assert isinstance(info, dict)

        print("✓ Implementation validated successfully")


def main():
    logging.basicConfig(level=os.environ.get("BREAKOUT_LOG_LEVEL", "WARNING").upper())

    # For human play, we want a real display.
    use_display_driver()

    env = GameEnv(render_mode="rgb_array")
    obs, info = env.reset()

    screen = pygame.display.set_mode((env.WIDTH, env.HEIGHT))
    pygame.display.set_caption("Breakout")

    def present(frame):
        surf = pygame.surfarray.make_surface(np.transpose(frame, (1, 0, 2)))
        screen.blit(surf, (0, 0))
        pygame.display.flip()

    print(env.user_guide)
    present(obs)

    # Click to start
    if not wait_for_click():
        env.close()
        return
    obs, reward, terminated, truncated, info = env.step([0, 0, 1])

    while not terminated:
        if quit_requested():
            env.close()
            return

        action = [0, 0, 0]
        if env.waiting_for_click:
            if not wait_for_click():
                env.close()
                return
            action[2] = 1
        else:
            mouse_x = poll_mouse_move()
            if mouse_x is not None:
                action[0] = 1
                action[1] = min(max(mouse_x, 0), env.WIDTH - 1)

        obs, reward, terminated, truncated, info = env.step(action)
        present(obs)

        pause(env.PAUSE_MS)

    print(f"Game Over! Final Score: {info['score']}")
    wait_for_click()

    env.close()


if __name__ == '__main__':
    main()
