"""
Configuration and Styling Module.

This module contains all layout constants and styling variables for the
competency question map, including the frame geometry, zoom thresholds,
packing budgets and the colour themes keyed by CQ type and cell density.
"""

# --- Frame Geometry (in px) ---
# Margins around the inner plot area; the left margin leaves room for the y-axis title.
MARGIN_TOP = 60
MARGIN_RIGHT = 80
MARGIN_BOTTOM = 100
MARGIN_LEFT = 150

# The inner plot never grows beyond these caps before expansion scaling.
MAX_PLOT_WIDTH = 800
MAX_PLOT_HEIGHT = 600
# Floor for the inner plot extent on tiny viewports.
MIN_PLOT_EXTENT = 60.0

# --- Band Grid ---
BAND_PADDING = 0.1          # Inner and outer padding, as a fraction of the band step.
BASELINE_AXIS_COUNT = 3     # Axis cardinality at session start (3 subdomains, 3 levels).
MAX_EXPANSION_FACTOR = 4.0  # Upper bound on count/baseline growth of the plot extent.
MIN_BAND_SIZE = 1.0         # Smallest cell side handed to placement and packing.

# --- Zoom ---
MIN_ZOOM_SCALE = 0.5
MAX_ZOOM_SCALE = 10.0
POINT_ZOOM_THRESHOLD = 0.5  # scale <= threshold renders markers
FULL_TERMS_ZOOM_THRESHOLD = 1.3  # scale > threshold renders every raw term
ZOOM_IN_FACTOR = 1.5
ZOOM_OUT_FACTOR = 0.75
PAN_STEP = 100.0  # Screen pixels moved per pan button press.
FIT_PADDING = 10.0  # Screen gap kept around the grid when fitting it to the canvas.

# --- Point Placement ---
SUB_GRID_SIZE = 4
FALLBACK_MIN = 0.1
FALLBACK_MAX = 0.9
POINT_CELL_MARGIN = 8.0
POINT_RADIUS = 5.0

# --- Label Packing ---
LABEL_CELL_PADDING = 8.0
LABEL_COLLISION_PADDING = 2.0
LABEL_RADIUS_MARGIN = 15.0
LABEL_SPIRAL_SPREAD = 0.9
GOLDEN_ANGLE_DEG = 137.5
ATTEMPT_ANGLE_STEP_DEG = 25.0
FALLBACK_RADIUS_FACTOR = 0.4
FALLBACK_RADIUS_CAP = 15.0
CHAR_WIDTH_FACTOR = 0.55
CHAR_SPACING_FACTOR = 0.05
MIN_FONT_SIZE = 5
MAX_FONT_PASSES = 5

# Per-mode font bounds and attempt budgets.
FULL_MODE_FONT = {'floor': 5, 'cap': 10, 'base': 11, 'divisor': 3}
COMPACT_MODE_FONT = {'floor': 7, 'cap': 14, 'base': 12, 'divisor': 2}
FULL_MODE_ATTEMPTS = 150
COMPACT_MODE_ATTEMPTS = 100

# --- Interaction ---
CELL_CLICK_PADDING = 5.0
AXIS_TICK_PADDING = 15.0
AXIS_TICK_FONT_SIZE = 12

# --- Style Theme ---
# Marker and label colours by grammatical role of the owning CQ.
CQ_TYPE_COLORS = {
    'subject': '#3b82f6',
    'property': '#10b981',
    'object': '#8b5cf6',
}
UNSPECIFIED_TYPE_COLOR = '#6b7280'

BACKGROUND_COLOR = '#fafafa'
AXIS_LINE_COLOR = '#94a3b8'
AXIS_TEXT_COLOR = '#1e293b'
AXIS_TITLE_COLOR = 'hsl(20, 14.3%, 4.1%)'
POINT_STROKE_COLOR = '#ffffff'

# Cell outline styles by number of relevant CQs: (upper bound, stroke, hover stroke, width).
# The last entry has no upper bound.
CELL_DENSITY_STYLES = [
    (0, 'rgba(148, 163, 184, 0.3)', 'rgba(59, 130, 246, 0.6)', 1.0),
    (3, 'rgba(59, 130, 246, 0.5)', 'rgba(99, 102, 241, 0.7)', 1.5),
    (6, 'rgba(99, 102, 241, 0.6)', 'rgba(139, 92, 246, 0.8)', 2.0),
    (None, 'rgba(139, 92, 246, 0.7)', 'rgba(168, 85, 247, 0.9)', 2.5),
]

# --- Suggestions ---
DEFAULT_GRANULARITY_LEVELS = ["First-level", "Second-level", "Third-level"]
TERMINOLOGY_TARGET = 3
TERMINOLOGY_MAX_ATTEMPTS = 10

# --- Reporting ---
EXPORT_SCHEMA_VERSION = "1.0"
REPORT_HEADER_COLOR = '#3b82f6'
