"""
Core constants and limits.

Defines integer widths, basis-point scale and default risk parameters
shared by the engine, the host service and the API.
"""

# Basis points
BPS_SCALE = 10_000

# Integer widths of the persisted record fields
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1
INT128_MIN = -(2**127)
INT128_MAX = 2**127 - 1
UINT16_MAX = 2**16 - 1
UINT8_MAX = 2**8 - 1

# Position limits
MAX_POSITIONS_PER_USER = UINT8_MAX  # open_position_count is a uint8

# Market defaults
DEFAULT_MAX_LEVERAGE = 20
DEFAULT_MAINTENANCE_MARGIN_BPS = 500  # 5%
DEFAULT_MAX_FUNDING_RATE = 1_000  # per base unit per second
DEFAULT_LIQUIDATION_FEE_BPS = 250  # 2.5% of closed notional to the liquidator
DEFAULT_LIQUIDATION_PENALTY_BPS = 250  # 2.5% of closed notional to the insurance fund

# Oracle
DEFAULT_PRICE_TTL_SECONDS = 60
MAX_TRACKED_MARKETS = 1_000

# Audit journal
MAX_JOURNAL_EVENTS = 10_000
JOURNAL_TRIM_TO = 8_000
