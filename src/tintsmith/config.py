"""Default configuration, constants, and limits for TintSmith."""

# --- Steps ---
STEPS = (100, 200, 300, 400, 500, 600, 700, 800, 900)
DEFAULT_BASE_STEP = 500

# --- Ramp curve defaults (HSL lightness, 0-1) ---
DEFAULT_LIGHTNESS_MAX = 0.95  # Step 100 target
DEFAULT_LIGHTNESS_MIN = 0.10  # Step 900 target
DEFAULT_EXTREME_RATIO = 0.5  # Fraction of remaining headroom used past a light/dark base

# --- Color limits ---
CHANNEL_MAX = 255
OPAQUE = 255

# --- Lunacy documents ---
DOCUMENT_EXTENSIONS = frozenset({".free"})
JSON_EXTENSIONS = frozenset({".json"})
DOCUMENT_ENTRY = "document.json"
PALETTE_GROUP = "Palette"
NAME_SEPARATOR = " / "
BASE_STEP_KEY = "tintsmith"  # Extra field on the base color object
MAX_DOCUMENT_BYTES = 256 * 1024 * 1024  # Uncompressed size guard for .free archives
MAX_ARCHIVE_MEMBERS = 100_000

# --- Runner ---
DEFAULT_WORKERS = 1
