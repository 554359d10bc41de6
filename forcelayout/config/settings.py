from __future__ import annotations

# Physics defaults
REPULSION = 1000.0
STIFFNESS = 600.0
FRICTION = 0.5
DT = 0.01
GRAVITY = False
GRAVITY_DIVISOR = 100.0
BARNES_HUT_THETA = 0.4
MAX_QUADTREE_DEPTH = 48
COINCIDENT_JITTER = 0.08
SPEED_LIMIT = 1000.0
DEFAULT_EDGE_LENGTH = 1.0
DEFAULT_NODE_MASS = 1.0

# Scheduling / auto-stop
TICK_INTERVAL = 0.01  # seconds, ~100 Hz
AUTO_STOP = True
STOP_THRESHOLD = 0.7
STOP_DEBOUNCE = 1.0  # seconds below threshold before halting

# Viewport
BOUNDS_PADDING = 1.2
BOUNDS_MIN_EXTENT = 4.0
BOUNDS_SMOOTHING = 0.04
DEFAULT_EXTENT = ((-1.0, -1.0), (1.0, 1.0))
SCREEN_MARGINS = (20, 20, 20, 20)  # top, right, bottom, left

# Viewer
WINDOW_WIDTH = 960
WINDOW_HEIGHT = 720
MAX_FPS = 60
PAUSED_AT_START = False
BACKGROUND_COLOR = (11, 14, 22)
EDGE_COLOR = (70, 84, 120)
NODE_COLOR = (120, 170, 255)
FAST_NODE_COLOR = (255, 190, 90)
FIXED_NODE_COLOR = (235, 90, 90)
TEXT_COLOR = (230, 235, 245)
NODE_DRAW_SIZE = 6
SPEED_COLOR_SCALING = 0.5
PICK_RADIUS = 1.0  # world units
DEMO_GRAPH = "tree"
DEMO_NODES = 40
