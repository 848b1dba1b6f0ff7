"""
Shared constants used across all engine modules.

Centralises wire-protocol values, tunables, and scoring thresholds so they
live in exactly one place.
"""

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

DEFAULT_SERVER_URL = "ws://localhost:3001"

PING_PATH = "/ws/ping"
DOWNLOAD_PATH = "/ws/download"
UPLOAD_PATH = "/ws/upload"

# ---------------------------------------------------------------------------
# Close codes
# ---------------------------------------------------------------------------

CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001
CLOSE_ABNORMAL = 1006            # no close frame received
EXPECTED_CLOSE_CODES = frozenset({CLOSE_NORMAL, CLOSE_GOING_AWAY})

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

DEFAULT_IDLE_TIMEOUT = 10.0      # seconds without any inbound frame
DEFAULT_UPLOAD_DURATION = 10.0   # fixed upload run
DEFAULT_PHASE_PAUSE = 0.5        # pause between session phases
CONNECT_TIMEOUT = 5.0
CLOSE_TIMEOUT = 2.0

PROGRESS_INTERVAL = 0.1          # 100 ms between progress events
MIN_SEND_INTERVAL = 0.016        # ~one frame at 60 Hz

MIN_DURATION = 1.0
MAX_DURATION = 300.0
MIN_IDLE_TIMEOUT = 1.0
MAX_IDLE_TIMEOUT = 120.0

# ---------------------------------------------------------------------------
# Data transfer
# ---------------------------------------------------------------------------

CHUNK_SIZE = 256 * 1024          # 256 KB initial chunk
RANDOM_BLOCK_SIZE = 65_536       # per-call limit of the random source
MAX_BUFFERED_BYTES = 10 * 1024 * 1024
MAX_FRAME_SIZE = 16 * 1024 * 1024

# ---------------------------------------------------------------------------
# Speed ceilings
# ---------------------------------------------------------------------------

DEFAULT_MAX_SPEED = 1000.0       # Mbps, progress clamp
UPLOAD_RATE_CAP = 1000.0         # Mbps, upload generator never targets more
MIN_MAX_SPEED = 1.0
MAX_MAX_SPEED = 100_000.0
