import numpy as np
from typing import List, Optional, Tuple
from dataclasses import dataclass
import os

import arena as A
from arena.engine import EscapeEngine

os.environ['PYGAME_HIDE_SUPPORT_PROMPT'] = '1'
import pygame


@dataclass
class AppearanceConfig:
    """Pixels only, never physics."""
    resolution: int = A.RESOLUTION
    bg_color: Tuple[int, int, int] = A.BG_COLOR
    wall_color: Tuple[int, int, int] = A.WALL_COLOR
    wall_width: int = A.WALL_WIDTH
    text_color: Tuple[int, int, int] = A.TEXT_COLOR
    wall_segments: int = 180


MENU_LINES = [
    "Keep the balls inside!",
    "Left / Right: rotate the circle",
    "Each escaped ball brings three more",
    "Space: pause   Esc: end game   Q: quit",
    "Press Enter to start",
]


class Renderer:
    """Maps arena state → pixel frames, and runs the interactive game."""

    def __init__(self, config: Optional[AppearanceConfig] = None):
        self.config = config or AppearanceConfig()

    def _scale(self, engine: EscapeEngine) -> float:
        # The canvas spans twice the arena center on each axis.
        return self.config.resolution / (2.0 * engine.config.center_x)

    def _to_pixel(self, engine: EscapeEngine, wx: float, wy: float) -> Tuple[int, int]:
        s = self._scale(engine)
        return int(round(wx * s)), int(round(wy * s))

    def wall_points(self, engine: EscapeEngine) -> List[Tuple[int, int]]:
        """Outline of the arena with the gap cut out at the current rotation."""
        cfg = engine.config
        start = engine.rotation + A.GAP_HALF_WIDTH
        stop = engine.rotation + 2 * np.pi - A.GAP_HALF_WIDTH
        angles = np.linspace(start, stop, self.config.wall_segments + 1)
        return [self._to_pixel(engine,
                               cfg.center_x + cfg.radius * np.cos(a),
                               cfg.center_y + cfg.radius * np.sin(a))
                for a in angles]

    def draw(self, surface: pygame.Surface, engine: EscapeEngine):
        surface.fill(self.config.bg_color)
        pygame.draw.lines(surface, self.config.wall_color, False,
                          self.wall_points(engine), self.config.wall_width)
        s = self._scale(engine)
        for ball in engine.balls:
            pr = max(1, int(round(ball.radius * s)))
            pygame.draw.circle(surface, ball.color,
                               self._to_pixel(engine, *ball.position), pr)

    def render(self, engine: EscapeEngine) -> np.ndarray:
        """Render current arena → (res, res, 3) uint8."""
        res = self.config.resolution
        surface = pygame.Surface((res, res))
        self.draw(surface, engine)
        return pygame.surfarray.array3d(surface).transpose(1, 0, 2)

    def _text(self, screen, font, text: str, y: int):
        label = font.render(text, True, self.config.text_color)
        screen.blit(label, label.get_rect(center=(self.config.resolution // 2, y)))

    def _draw_menu(self, screen, font, title_font):
        screen.fill(self.config.bg_color)
        mid = self.config.resolution // 2
        self._text(screen, title_font, "Circle Escape", mid - 90)
        for i, line in enumerate(MENU_LINES):
            self._text(screen, font, line, mid - 30 + 28 * i)

    def _draw_hud(self, screen, font, engine: EscapeEngine, paused: bool):
        hud = f"Balls: {len(engine.balls)}   Time: {int(engine.time)}s   Escaped: {engine.score}"
        self._text(screen, font, hud, 16)
        if paused:
            self._text(screen, font, "Paused - Space to resume", self.config.resolution - 16)

    def play(self, engine: EscapeEngine, fps: int = A.FPS):
        """Menu → playing ⇄ paused → menu. Press Q or close the window to exit."""
        pygame.init()
        pygame.key.set_repeat(200, 40)
        res = self.config.resolution
        screen = pygame.display.set_mode((res, res))
        pygame.display.set_caption('Circle Escape')
        font = pygame.font.Font(None, 24)
        title_font = pygame.font.Font(None, 44)
        clock = pygame.time.Clock()

        mode = 'menu'
        running = True
        while running:
            dt = clock.tick(fps) / 1000.0
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_q:
                        running = False
                    elif mode == 'menu':
                        if event.key == pygame.K_RETURN:
                            engine.initialize()
                            mode = 'playing'
                    elif event.key == pygame.K_ESCAPE:
                        print(f"Game over: {engine.score} escaped in {int(engine.time)}s, "
                              f"{len(engine.balls)} balls left")
                        mode = 'menu'
                    elif event.key == pygame.K_SPACE:
                        mode = 'paused' if mode == 'playing' else 'playing'
                    elif mode == 'playing' and event.key == pygame.K_LEFT:
                        engine.rotate(-1)
                    elif mode == 'playing' and event.key == pygame.K_RIGHT:
                        engine.rotate(1)

            if mode == 'menu':
                self._draw_menu(screen, font, title_font)
            else:
                if mode == 'playing':
                    engine.step(dt)
                self.draw(screen, engine)
                self._draw_hud(screen, font, engine, paused=(mode == 'paused'))
            pygame.display.flip()

        pygame.quit()


def save_frames(frames: List[np.ndarray], path: str):
    """Save frames as individual PNGs."""
    os.makedirs(path, exist_ok=True)
    for t, frame in enumerate(frames):
        surf = pygame.surfarray.make_surface(frame.transpose(1, 0, 2))
        pygame.image.save(surf, os.path.join(path, f'frame_{t:05d}.png'))
