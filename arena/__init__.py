# ── Central defaults (tune here, not scattered across files) ──
import math

# Arena
CENTER_X = 200.0
CENTER_Y = 200.0
ARENA_RADIUS = 150.0
GAP_WIDTH = math.pi / 15          # total angular width, centered on angle 0
GAP_HALF_WIDTH = GAP_WIDTH / 2
ROTATION_STEP = 0.1               # radians per left/right input event

# Physics (fixed design parameters)
RESTITUTION = 0.8
WALL_DAMPING = 0.95
JITTER_PROBABILITY = 0.01
JITTER_STRENGTH = 0.1
EPS = 1e-12

# Spawning
BALLS_PER_SPAWN = 3
SPAWN_OFFSET = 60.0
SPEED_RANGE = (0.3, 0.8)
RADIUS_RANGE = (6.0, 9.0)
SATURATION = 0.8
LIGHTNESS = 0.6

# Rendering
RESOLUTION = 400
FPS = 60
FRAME_DT = 1.0 / FPS
BG_COLOR = (255, 255, 255)
WALL_COLOR = (51, 51, 51)
WALL_WIDTH = 4
TEXT_COLOR = (40, 40, 40)
BALL_COLOR = (66, 135, 245)

# Evaluation
N_STEPS = 3600
SEED = 42
