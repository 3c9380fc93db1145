"""
Application constants.

Centralized constants for the reward engine.
"""

from decimal import Decimal

# ========================================================================
# REWARD FORMULA CONSTANTS
# ========================================================================

# Loyalty ramp: coefficient grows from MIN to MIN + SPAN over the program
TIME_COEFFICIENT_MIN = Decimal("0.6")
TIME_COEFFICIENT_SPAN = Decimal("0.4")
TIME_COEFFICIENT_MAX = TIME_COEFFICIENT_MIN + TIME_COEFFICIENT_SPAN

# In-range multiplier bounds for concentrated (non full-range) positions
IN_RANGE_MULTIPLIER_FLOOR = Decimal("0.1")
IN_RANGE_MULTIPLIER_CEILING = Decimal("1.0")

DAYS_PER_YEAR = 365
SECONDS_PER_DAY = 86400

# Uniswap V3 tick bounds; a position spanning them is full range
MIN_TICK = -887272
MAX_TICK = 887272

# Widest tick spacing; bounds within it of MIN/MAX_TICK count as full range
FULL_RANGE_TICK_TOLERANCE = 200

# ========================================================================
# CLAIM CONSTANTS
# ========================================================================

DEFAULT_CLAIM_LOCK_HOURS = 24.0
DEFAULT_VOUCHER_TTL_MINUTES = 10.0

# Redis claim lock (seconds)
CLAIM_LOCK_TIMEOUT = 30
CLAIM_LOCK_BLOCKING_TIMEOUT = 10.0

# ========================================================================
# RECALCULATION CONSTANTS
# ========================================================================

DEFAULT_RECALCULATION_INTERVAL_HOURS = 4.0
DEFAULT_RECALCULATION_CONCURRENCY = 3
DEFAULT_IN_RANGE_WINDOW_DAYS = 7.0

# Reward history query range (days)
DEFAULT_HISTORY_DAYS = 30
MAX_HISTORY_DAYS = 365

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

# Blockchain operation timeouts (in seconds)
BLOCKCHAIN_TIMEOUT = 15.0  # Contract reads (nonces, claimed amounts, slot0)
BLOCKCHAIN_LONG_TIMEOUT = 60.0  # Event log scans

# Upstream retry settings (short, bounded)
RPC_MAX_RETRIES = 3
RPC_RETRY_BASE_DELAY = 0.5

# Claim event indexing
CLAIM_EVENTS_SYNC_KEY = "CLAIM_EVENTS"

# ========================================================================
# DRAMATIQ TASK TIME LIMITS (milliseconds)
# ========================================================================

DRAMATIQ_TIME_LIMIT_MEDIUM = 120_000
DRAMATIQ_TIME_LIMIT_LONG = 600_000
