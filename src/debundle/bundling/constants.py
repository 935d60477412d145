"""Bundling constants used across the bundling modules.

Centralizes the defaults of BundleConfig and the numeric guards shared by
the compatibility and relaxation code.
"""

# ---------------------------------------------------------------------------
# Pass schedule
# ---------------------------------------------------------------------------
PASSES: int = 5
"""Number of relaxation passes."""

INITIAL_SUBDIVISIONS: int = 1
"""Interior control points per half-edge in the first pass."""

SUBDIVISION_GROWTH: float = 2.0
"""Factor applied to the interior point count between passes."""

STEP_SIZE: float = 0.04
"""Largest per-iteration displacement, as a fraction of mean edge length."""

STEP_DECAY: float = 0.5
"""Factor applied to the step size between passes."""

ITERATIONS: int = 50
"""Relaxation iterations in the first pass."""

ITERATION_DECAY: float = 2.0 / 3.0
"""Factor applied to the iteration count between passes."""

# ---------------------------------------------------------------------------
# Compatibility
# ---------------------------------------------------------------------------
COMPATIBILITY_THRESHOLD: float = 0.05
"""Pairs must score strictly above this to influence each other."""

MAX_NEIGHBORS: int = 32
"""Most compatible edges that may attract one edge during a pass."""

# ---------------------------------------------------------------------------
# Force model
# ---------------------------------------------------------------------------
SPRING_CONSTANT: float = 0.1
"""Stiffness of the spring term keeping half-edges smooth."""

ATTRACTION_RADIUS: float = 0.1
"""Softening length of the attraction falloff, as a fraction of mean edge length."""

LANE_WIDTH: float = 0.025
"""Separation of opposite-direction lanes, as a fraction of mean edge length."""

# ---------------------------------------------------------------------------
# Numeric guards
# ---------------------------------------------------------------------------
LENGTH_EPSILON: float = 1e-12
"""Lengths at or below this are treated as zero."""

WARNING_PREVIEW: int = 5
"""Edge keys listed in a degenerate-edge warning before truncating."""

PREPROCESSING_PHASE: str = "preprocessing"
"""Progress phase name reported while edges are divided."""
