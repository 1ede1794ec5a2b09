"""Internal constants shared across the library."""

# Identity policy: admitted identifiers look like ``SD-B...``.
ADMITTED_PREFIX = "SD-"
ADMITTED_MARKER = "B"

UNKNOWN_IDENTIFIER = "SD-UNK"

DEFAULT_FEED_URL = "http://localhost:9013"
DEFAULT_MQTT_TOPIC = "drones/telemetry"

# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------

ICON_ADMITTED = "green"
ICON_RESTRICTED = "red"
SELECTION_MIN_ZOOM = 14.0
HIGHLIGHT_SECONDS = 0.8

# ------------------------------------------------------------------
# Demo motion
# ------------------------------------------------------------------

DEMO_RADIUS_DEG = 0.0012
DEMO_ANGULAR_STEP = 0.2
DEMO_YAW_STEP_DEG = 15.0
DEMO_DEFAULT_ALTITUDE_M = 100.0
