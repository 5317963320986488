"""
Application-wide constants for Skin Market Watch.

Centralizes magic numbers and configuration values to improve maintainability.
"""

from decimal import Decimal

# =============================================================================
# Network Timeouts (seconds)
# =============================================================================

# Default timeout for API requests (general use)
API_TIMEOUT_DEFAULT = 10

# Timeout for marketplace search/history calls
API_TIMEOUT_MARKET = 15

# Extended timeout for large data fetches (image catalog)
API_TIMEOUT_EXTENDED = 60

# Timeout for thread/worker joins
THREAD_JOIN_TIMEOUT = 2.0


# =============================================================================
# Rate Limiting
# =============================================================================

# Steam throttles the price history endpoint hard (~20 req/min is safe)
RATE_LIMIT_STEAM = 0.33


# =============================================================================
# Connection Pool / Fan-out
# =============================================================================

# Maximum connections per pool; must cover the search fan-out
HTTP_POOL_MAXSIZE = 20

# Worker threads for per-item secondary lookups
SEARCH_MAX_WORKERS = 8


# =============================================================================
# Marketplace Conventions
# =============================================================================

# Steam application id for Counter-Strike 2 items
APP_ID_CS2 = 730

# Minimum query length before any provider is contacted
SEARCH_MIN_QUERY_LENGTH = 3

# Result limit for the primary provider search
SEARCH_RESULT_LIMIT = 10

# Sale records requested from the primary provider history endpoint
HISTORY_SALES_LIMIT = 20

# Maximum consumer-marketplace history points kept (most recent)
HISTORY_MAX_POINTS = 90


# =============================================================================
# Auth Tokens (TOTP)
# =============================================================================

TOTP_STEP_SECONDS = 30
TOTP_DIGITS = 6

# Epoch shifts tried, in order, when the primary provider reports clock skew
AUTH_RETRY_SHIFTS = (0, -1, 1)

# Primary provider error codes meaning "token outside accepted window"
CLOCK_SKEW_CODES = frozenset({"GLO_005"})


# =============================================================================
# Currency
# =============================================================================

# Used until the first successful refresh (USD -> BRL)
DEFAULT_BRL_RATE = Decimal("5.50")

# Exchange rate refresh interval - 1 hour
EXCHANGE_RATE_REFRESH_INTERVAL = 3600


# =============================================================================
# Images
# =============================================================================

PLACEHOLDER_IMAGE_URL = "https://placehold.co/600x400/1a1a1f/FFF?text="

# Characters of the item name embedded in a placeholder image URL
PLACEHOLDER_NAME_LENGTH = 20

SKIN_CATALOG_URL = "https://raw.githubusercontent.com/ByMykel/CSGO-API/main/public/api/en"
