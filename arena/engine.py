"""
2D Escape Engine — balls in a circular arena with a rotating gap.

- Balls bounce inside a circle of fixed radius
- Ball-ball collisions: impulse response, restitution 0.8, mass = radius
- Ball-wall collisions: radial reflection, damped by 0.95
- A ball crossing the wall through the gap escapes; the caller spawns 3 more
- State per ball: (x, y, vx, vy, radius, mass)

Tick: integrate → ball collisions → wall / gap → partition (live, escaped)
"""

import colorsys
import copy
import numpy as np
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import arena as A


TWO_PI = 2 * np.pi

ESCAPED = 'escaped'
BOUNCE = 'bounce'


@dataclass
class Ball:
    """Physics state plus a display color. Radius (and mass) fixed at creation."""
    x: float
    y: float
    vx: float
    vy: float
    radius: float
    mass: float = field(init=False)
    color: Tuple[int, int, int] = A.BALL_COLOR
    escaped: bool = False
    ball_id: int = 0

    def __post_init__(self):
        if not self.radius > 0:
            raise ValueError(f"Ball radius must be positive, got {self.radius}")
        self.mass = float(self.radius)

    def __setattr__(self, name, value):
        if name in ('radius', 'mass') and name in self.__dict__:
            raise AttributeError(f"Ball.{name} is fixed at creation")
        object.__setattr__(self, name, value)

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y])

    @property
    def velocity(self) -> np.ndarray:
        return np.array([self.vx, self.vy])

    @property
    def speed(self) -> float:
        return float(np.sqrt(self.vx**2 + self.vy**2))

    @property
    def state(self) -> np.ndarray:
        return np.array([self.x, self.y, self.vx, self.vy])

    @property
    def full_state(self) -> np.ndarray:
        return np.array([self.x, self.y, self.vx, self.vy, self.radius, self.mass])


def _hsl_color(hue: float) -> Tuple[int, int, int]:
    r, g, b = colorsys.hls_to_rgb(hue, A.LIGHTNESS, A.SATURATION)
    return int(round(r * 255)), int(round(g * 255)), int(round(b * 255))


def create_ball(center_x: float, center_y: float, rng=None, ball_id: int = 0) -> Ball:
    """New ball within SPAWN_OFFSET of the center, random heading and speed."""
    rng = rng if rng is not None else np.random.RandomState()
    angle = rng.uniform(0, TWO_PI)
    offset = rng.uniform(0, A.SPAWN_OFFSET)
    speed = rng.uniform(*A.SPEED_RANGE)
    heading = rng.uniform(0, TWO_PI)
    r = rng.uniform(*A.RADIUS_RANGE)
    hue = rng.uniform(0, 1)
    return Ball(x=float(center_x + offset * np.cos(angle)),
                y=float(center_y + offset * np.sin(angle)),
                vx=float(speed * np.cos(heading)),
                vy=float(speed * np.sin(heading)),
                radius=float(r), color=_hsl_color(hue), ball_id=ball_id)


# Ball-ball

def resolve_collision(a: Ball, b: Ball, restitution: float = A.RESTITUTION) -> bool:
    """
    Impulse collision response for one pair.
    Convention: normal a→b, dvn = (vb-va)·n, impulse only when dvn < 0.
    Overlapping balls are always pushed apart by half the overlap each.
    Returns True if the pair was in contact.
    """
    if a is b:
        return False
    dx = b.x - a.x
    dy = b.y - a.y
    dist = np.sqrt(dx**2 + dy**2)
    min_dist = a.radius + b.radius

    # Coincident centers have no normal
    if dist >= min_dist or dist < A.EPS:
        return False

    nx, ny = dx / dist, dy / dist

    dvn = (b.vx - a.vx) * nx + (b.vy - a.vy) * ny
    if dvn < 0:
        j = -(1 + restitution) * dvn / ((1.0 / a.mass) + (1.0 / b.mass))
        a.vx -= j * nx / a.mass
        a.vy -= j * ny / a.mass
        b.vx += j * nx / b.mass
        b.vy += j * ny / b.mass

    half = (min_dist - dist) / 2
    a.x -= nx * half
    a.y -= ny * half
    b.x += nx * half
    b.y += ny * half
    return True


def resolve_all_collisions(balls: Sequence[Ball],
                           restitution: float = A.RESTITUTION) -> List[Tuple[int, int]]:
    """All-pairs sweep, each unordered pair once. Returns index pairs in contact."""
    contacts = []
    n = len(balls)
    for i in range(n):
        for j in range(i + 1, n):
            if resolve_collision(balls[i], balls[j], restitution):
                contacts.append((i, j))
    return contacts


# Wall / gap

def relative_angle(x: float, y: float, center_x: float, center_y: float,
                   rotation: float) -> float:
    """Angle of (x, y) about the center in the arena's own frame, in [0, 2π)."""
    angle = np.arctan2(y - center_y, x - center_x)
    rel = float((angle - rotation) % TWO_PI)
    # float modulo of a tiny negative rounds up to 2π
    return 0.0 if rel >= TWO_PI else rel


def in_gap(angle: float, half_width: float = A.GAP_HALF_WIDTH) -> bool:
    return angle <= half_width or angle >= TWO_PI - half_width


def resolve_boundary(ball: Ball, center_x: float, center_y: float,
                     arena_radius: float, rotation: float) -> Optional[str]:
    """
    Wall contact for one ball. Returns ESCAPED, BOUNCE or None.

    The wall is reached when the ball's edge touches the circle; escape needs
    the center itself past the circle while aligned with the gap. A ball in
    the gap whose center is not yet past is left alone.
    """
    dx = ball.x - center_x
    dy = ball.y - center_y
    dist = np.sqrt(dx**2 + dy**2)

    if dist < A.EPS or dist < arena_radius - ball.radius:
        return None

    if in_gap(relative_angle(ball.x, ball.y, center_x, center_y, rotation)):
        if dist >= arena_radius:
            ball.escaped = True
            return ESCAPED
        return None

    ux, uy = dx / dist, dy / dist
    speed = ball.speed * A.WALL_DAMPING
    ball.vx = float(-ux * speed)
    ball.vy = float(-uy * speed)

    push_back = arena_radius - dist - ball.radius
    ball.x += float(ux * push_back)
    ball.y += float(uy * push_back)
    return BOUNCE


def apply_jitter(ball: Ball, rng, probability: float = A.JITTER_PROBABILITY,
                 strength: float = A.JITTER_STRENGTH) -> bool:
    """Occasional small velocity kick so the arena never settles."""
    if probability <= 0 or rng.random_sample() >= probability:
        return False
    ball.vx += float((rng.random_sample() - 0.5) * strength)
    ball.vy += float((rng.random_sample() - 0.5) * strength)
    return True


def tick(balls: Sequence[Ball], center_x: float, center_y: float,
         arena_radius: float, rotation: float, rng=None,
         jitter_probability: float = A.JITTER_PROBABILITY
         ) -> Tuple[List[Ball], List[Ball]]:
    """
    Advance every ball by one unit step.
    Returns (live, escaped), both in input order. Balls are updated in place;
    the input sequence itself is not modified.
    """
    rng = rng if rng is not None else np.random.RandomState()
    balls = [b for b in balls if not b.escaped]

    for ball in balls:
        ball.x += ball.vx
        ball.y += ball.vy

    resolve_all_collisions(balls)

    live, escaped = [], []
    for ball in balls:
        if resolve_boundary(ball, center_x, center_y, arena_radius, rotation) == ESCAPED:
            escaped.append(ball)
            continue
        apply_jitter(ball, rng, jitter_probability)
        live.append(ball)
    return live, escaped


# Session

@dataclass
class ArenaConfig:
    center_x: float = A.CENTER_X
    center_y: float = A.CENTER_Y
    radius: float = A.ARENA_RADIUS
    balls_per_spawn: int = A.BALLS_PER_SPAWN
    jitter_probability: float = A.JITTER_PROBABILITY
    seed: Optional[int] = None


class EscapeEngine:
    """
    One game's worth of state around the tick function.

    Owns the ball list, rotation, elapsed time and score; spawns
    balls_per_spawn new balls for every escapee.
    """

    def __init__(self, config: ArenaConfig):
        self.config = config
        self.rng = np.random.RandomState(config.seed)
        self.balls: List[Ball] = []
        self.rotation: float = 0.0
        self.time: float = 0.0
        self.score: int = 0
        self.n_steps: int = 0
        self.escape_log: List[Dict] = []
        self._next_id = 0

    def initialize(self, balls: Optional[List[Ball]] = None) -> List[Ball]:
        self.rotation = 0.0
        self.time = 0.0
        self.score = 0
        self.n_steps = 0
        self.escape_log = []
        if balls is not None:
            self.balls = [copy.deepcopy(b) for b in balls]
            self._next_id = max((b.ball_id for b in self.balls), default=-1) + 1
            return self.balls

        self._next_id = 0
        self.balls = self.spawn(self.config.balls_per_spawn)
        return self.balls

    def spawn(self, n: int) -> List[Ball]:
        new_balls = []
        for _ in range(n):
            new_balls.append(create_ball(self.config.center_x, self.config.center_y,
                                         rng=self.rng, ball_id=self._next_id))
            self._next_id += 1
        return new_balls

    def rotate(self, direction: int):
        if direction not in (-1, 0, 1):
            raise ValueError(f"Rotation direction must be -1, 0 or 1, got {direction}")
        self.rotation += direction * A.ROTATION_STEP

    def step(self, dt: float = A.FRAME_DT) -> List[Ball]:
        """Advance one tick; returns the balls that escaped during it."""
        if dt < 0:
            raise ValueError(f"Elapsed time must not go backwards, got dt={dt}")
        cfg = self.config
        rotation = self.rotation
        live, escaped = tick(self.balls, cfg.center_x, cfg.center_y, cfg.radius,
                             rotation, rng=self.rng,
                             jitter_probability=cfg.jitter_probability)
        self.time += dt
        self.n_steps += 1

        for b in escaped:
            self.escape_log.append({
                'time': self.time, 'step': self.n_steps, 'ball_id': b.ball_id,
                'pos': (b.x, b.y), 'rotation': rotation,
            })
        self.score += len(escaped)
        self.balls = live + self.spawn(cfg.balls_per_spawn * len(escaped))
        return escaped

    # State access

    def get_state(self) -> np.ndarray:
        """(n_balls, 4) → [x, y, vx, vy]"""
        return np.array([b.state for b in self.balls]).reshape(-1, 4)

    def get_full_state(self) -> np.ndarray:
        """(n_balls, 6) → [x, y, vx, vy, radius, mass]"""
        return np.array([b.full_state for b in self.balls]).reshape(-1, 6)

    def set_state(self, state: np.ndarray):
        assert state.shape == (len(self.balls), 4)
        for i, ball in enumerate(self.balls):
            ball.x, ball.y, ball.vx, ball.vy = (float(v) for v in state[i])

    # Conserved (or not) quantities

    def total_kinetic_energy(self) -> float:
        return sum(0.5 * b.mass * (b.vx**2 + b.vy**2) for b in self.balls)

    def total_momentum(self) -> np.ndarray:
        px = sum(b.mass * b.vx for b in self.balls)
        py = sum(b.mass * b.vy for b in self.balls)
        return np.array([px, py])


def generate_session(config: ArenaConfig, n_steps: int = A.N_STEPS,
                     policy: Optional[Callable[[EscapeEngine], int]] = None,
                     max_balls: Optional[int] = None, dt: float = A.FRAME_DT) -> Dict:
    """
    Headless game. policy(engine) → rotation direction in {-1, 0, 1} per step.
    Stops early once more than max_balls are live.
    Returns dict with counts, energy, momentum, score, rotation, full_states, escapes.
    """
    engine = EscapeEngine(config)
    engine.initialize()

    counts = [len(engine.balls)]
    energy = [engine.total_kinetic_energy()]
    momentum = [engine.total_momentum()]
    score = [engine.score]
    rotation = [engine.rotation]
    full_states = [engine.get_full_state()]

    for _ in range(n_steps):
        if policy is not None:
            engine.rotate(policy(engine))
        engine.step(dt)
        counts.append(len(engine.balls))
        energy.append(engine.total_kinetic_energy())
        momentum.append(engine.total_momentum())
        score.append(engine.score)
        rotation.append(engine.rotation)
        full_states.append(engine.get_full_state())
        if max_balls is not None and len(engine.balls) > max_balls:
            break

    return {
        'config': config,
        'counts': np.array(counts),
        'energy': np.array(energy),
        'momentum': np.array(momentum),
        'score': np.array(score),
        'rotation': np.array(rotation),
        'full_states': full_states,
        'escapes': engine.escape_log,
        'time': engine.time,
    }
