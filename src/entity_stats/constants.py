# Stat calculation cache lifetime in milliseconds. Applies to both the
# per-entity stats cache and the per-effect "is active" cache.
STATS_CACHE_TTL_MS = 1000.0

# Reject non-stackable effects in StatSystem.add_effect when an attached
# effect touching the same stat cannot stack with them.
ENFORCE_STACKABILITY = True

# Bound defaults used when a BoundConfig leaves min/max unset.
DEFAULT_MIN_BOUND = 0.0
DEFAULT_MAX_BOUND = 100.0
# Equality tolerance for at-min / at-max / within-bounds checks.
BOUND_TOLERANCE = 0.001

# Ratio thresholds for bound state labels.
CRITICAL_RATIO = 0.25
LOW_RATIO = 0.5
HIGH_RATIO = 0.75
FULL_RATIO = 1.0
EMPTY_RATIO = 0.0

# Bound state labels, in evaluation precedence order.
STATE_MAXIMUM = "Maximum"
STATE_MINIMUM = "Minimum"
STATE_CRITICAL = "Critical"
STATE_LOW = "Low"
STATE_HIGH = "High"
STATE_NORMAL = "Normal"

# Slot used by GearSystem when neither the caller nor the gear names one.
DEFAULT_GEAR_SLOT = "default"
