# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They belong to the engine's framework (colors, glow sizes, thresholds of
the rule models) rather than to the experimental configuration, which
lives in config.json and is parsed by parameters.py.
"""

# --- Host window ---
# Set to True to run in borderless fullscreen mode.
FULLSCREEN = False
DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720
FPS = 60
WINDOW_TITLE = "More Is Different"

# A requested particle count must differ from the live count by more than
# this before the entity store is rebuilt.
COUNT_HYSTERESIS = 10

SIMULATION_KINDS = ("flocking", "pairing", "gravity", "orbitals")

# --- Flocking ---
FLOCK_BACKGROUND = (2, 6, 23)
FLOCK_COLOR = (100, 255, 218)
FLOCK_BODY_ALPHA = 0.6
FLOCK_SEGMENT_HALF_LENGTH = 4.0
FLOCK_HEAD_RADIUS = 2

# --- Pairing ---
PAIRING_BACKGROUND = (2, 6, 17)
PAIR_LINK_COLOR = (91, 192, 190)
PAIRED_COLOR = (200, 220, 230)
UNPAIRED_COLOR = (100, 116, 139)
UNPAIRED_ALPHA = 0.3
# Above this temperature no pair survives and none forms.
CRITICAL_TEMPERATURE = 0.6
# Below this temperature the coherent drift field is switched on.
COHERENCE_TEMPERATURE = 0.3
THERMAL_NOISE_SCALE = 0.2
DRIFT_STRENGTH = 0.02
DRIFT_WAVENUMBER = 0.01
DRIFT_CROSS_AMPLITUDE = 0.5
PAIR_VELOCITY_BLEND = 0.05
# Friction multiplier applied below the critical temperature (viscosity).
CONDENSED_FRICTION_FACTOR = 1.5
GRID_CELL_FACTOR = 1.5
BREAK_DISTANCE_FACTOR = 3.0
REST_LENGTH_FACTOR = 0.5

# --- Gravity ---
GRAVITY_BACKGROUND = (4, 8, 20)
CENTRAL_COLOR = (167, 243, 208)
# Curated comet palette, cycled when bodies are spawned.
COMET_COLORS = [
    (155, 176, 255),  # O/B blue
    (202, 215, 255),  # A white
    (248, 247, 255),  # F white
    (255, 244, 234),  # G yellow-white
    (255, 210, 161),  # K orange
    (255, 204, 111),  # M red-orange
]
COMET_MIN_MASS = 0.5
COMET_MAX_MASS = 3.0
# Bodies are spawned between this fraction of the spawn radius and the radius.
INNER_SPAWN_FRACTION = 0.4
# Fraction of the viewport (shortest side) covered by the outer boundary.
GRAVITY_VIEW_FILL = 0.95

# --- Orbitals ---
ORBITAL_BACKGROUND = (2, 4, 10)
CLOUD_COLOR = (100, 149, 237)
ELECTRON_COLOR = (0, 255, 255)
NUCLEUS_COLOR = (200, 220, 255)
# Half side of the sampling cube, in Bohr radii.
ORBITAL_EXTENTS = {"1s": 3.5, "2s": 10.0, "2p": 12.0, "3d": 24.0}
# Pixels per Bohr radius when the cloud is drawn.
ORBITAL_SCALES = {"1s": 90.0, "2s": 30.0, "2p": 26.0, "3d": 13.0}
CAMERA_DISTANCE = 1200.0
FOCAL_LENGTH = 800.0
# Points closer than this to the camera plane are clipped.
NEAR_CLIP = 10.0
CAMERA_DAMPING = 0.05
POINTER_SENSITIVITY = 0.0002
ELECTRON_ORBIT_RADIUS = 200.0
ELECTRON_ANGLE_SPEED = 0.05
ELECTRON_PHI_SPEED = 0.03
# Heisenberg jitter applied to the collapsed electron, in pixels.
ELECTRON_UNCERTAINTY = 20.0
ELECTRON_TRAIL_LENGTH = 30

# --- Shared glow settings ---
# Ratio of the glow sprite size to the particle radius.
GLOW_RATIO = 3
GLOW_ALPHA = 90
