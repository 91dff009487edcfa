"""
Configuration constants for Orrery.

This module centralizes all configuration parameters used throughout the application,
making them easily configurable and maintainable.
"""

# === PHYSICS Configuration - Kepler Solver ===

# Kepler's Equation Solver Parameters
DEFAULT_KEPLER_TOLERANCE = 1e-10             # Residual tolerance |f(E)| for convergence
DEFAULT_KEPLER_MAX_ITERATIONS = 50           # Maximum Newton iterations per solve
HIGH_ECCENTRICITY_THRESHOLD = 0.7           # Threshold for high-e initial guess
HIGH_E_COEFFICIENT = 0.85                   # Danby coefficient for high-e initial guess
HYPERBOLIC_GUESS_OFFSET = 1.8               # E0 = sign(M) * ln(2|M|/e + offset)
KEPLER_LOGGING_PRECISION = 6                # Decimal places for logging

# Regime classification
# Eccentricities within this band of 1 are handled by the parabolic (Barker) branch
PARABOLIC_ECCENTRICITY_TOLERANCE = 1e-6

# === PHYSICS Configuration - Orbital Elements ===

# Orbital Element Validation Ranges
MIN_ECCENTRICITY = 0.0
MIN_SEMIMAJOR_AXIS_AU = 0.0                 # Exclusive lower bound

# Time conversion
SECONDS_PER_DAY = 86400.0
DAYS_PER_JULIAN_CENTURY = 36525.0

# Supported catalog rate units
RATE_UNIT_DAY = "day"
RATE_UNIT_CENTURY = "century"
AVAILABLE_RATE_UNITS = [RATE_UNIT_DAY, RATE_UNIT_CENTURY]
DEFAULT_RATE_UNIT = RATE_UNIT_DAY

# === SCENE Configuration ===

# Astronomical-unit-to-world-unit scale factor (constant over a session)
DEFAULT_AU_SCALE = 100.0

# Euler order used to compose (i, Omega, omega) into the orbital orientation.
# Upper case means intrinsic rotations.
ORBITAL_EULER_ORDER = "XYZ"

# === ORBIT PATH Configuration ===

ORBIT_PATH_SEGMENTS = 128                   # Samples per closed elliptical loop
HYPERBOLIC_PATH_SEGMENTS = 64               # Intervals along the open hyperbolic arc
HYPERBOLIC_PATH_MEAN_ANOMALY_STEP = 0.2     # Mean anomaly step (rad) between arc samples

# === VIEW Configuration - Attenuation ===

# Opacity thresholds as multiples of the semi-major axis (world units)
OPACITY_MIN_DISTANCE_FACTOR = 4.0           # Fully visible below a * k1
OPACITY_MAX_DISTANCE_FACTOR = 10.0          # Fully transparent beyond a * k2

# Label scale thresholds (camera distance from the scene origin, world units)
LABEL_MIN_CAMERA_DISTANCE = 10.0
LABEL_MAX_CAMERA_DISTANCE = 12000.0
LABEL_MIN_SCALE = 1.5
LABEL_MAX_SCALE = 500.0

# Label placement along the body's radial direction
LABEL_OFFSET_DIVISOR = 20.0                 # offset = a * au_scale / divisor

# Visibility and interaction
VISIBILITY_OPACITY_THRESHOLD = 0.05         # Hidden at or below this opacity
SELECTION_OPACITY_THRESHOLD = 0.05          # Not selectable at or below this opacity

# === VIEW Configuration - Smoothing ===

DEFAULT_SMOOTHING_FACTOR = 0.1              # Fraction of the gap closed per frame
ORBIT_LINE_OPACITY_CAP = 0.4                # Orbit trace never exceeds this opacity
LABEL_OPACITY_CAP = 0.7                     # Labels never exceed this opacity

# === CATALOG Configuration ===

CATALOG_ELEMENT_COLUMNS = [
    'semi_major_axis',
    'eccentricity',
    'inclination',
    'longitude_of_ascending_node',
    'argument_of_periapsis',
    'mean_anomaly_at_epoch',
]
CATALOG_RATE_SUFFIX = '_rate'
CATALOG_REQUIRED_COLUMNS = ['name', 'orbital_period'] + CATALOG_ELEMENT_COLUMNS
CATALOG_OPTIONAL_DEFAULTS = {
    'type': 'planet',
    'rotation_speed': 0.0,
    'rotation_axis_x': 0.0,
    'rotation_axis_y': 1.0,
    'rotation_axis_z': 0.0,
}
AVAILABLE_BODY_TYPES = ['planet', 'dwarf', 'comet']
ENCODING_FALLBACK_ORDER = ['utf-8', 'latin-1']

# === CLI Configuration ===

DEFAULT_SIMULATION_TICKS = 600              # Number of ticks run by `orrery simulate`
DEFAULT_TICK_SECONDS = 1.0 / 60.0           # Real seconds per tick
DEFAULT_SPEED_FACTOR = 86400.0              # One simulated day per real second
DEFAULT_OBSERVER_POSITION = (0.0, 500.0, 1500.0)
CLI_COORDINATE_PRECISION = 4
CLI_DISPLAY_LINE_WIDTH = 80
CLI_HEADER_CHAR = "="

# Logging Configuration
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
