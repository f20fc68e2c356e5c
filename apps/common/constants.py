"""
Marketplace Constants

Centralized business limits for ordering, redemptions and the points ledger.
Single source of truth for rules that span multiple apps.
"""

from typing import Final

# ===============================================================================
# ORDERING LIMITS 🛒
# ===============================================================================

MAX_ITEMS_PER_ORDER: Final[int] = 100               # Lines per submitted basket
MAX_QUANTITY_PER_LINE: Final[int] = 10_000          # Units per order line
MAX_DISCOUNT_PCT: Final[int] = 100                  # Remise upper bound

# ===============================================================================
# LOYALTY LIMITS 🎁
# ===============================================================================

MAX_ITEMS_PER_REDEMPTION: Final[int] = 50
MAX_QUANTITY_PER_REDEMPTION_LINE: Final[int] = 1_000
MAX_MANUAL_ADJUSTMENT_POINTS: Final[int] = 1_000_000

# ===============================================================================
# LEDGER REASONS 📒
# ===============================================================================

LEDGER_REASON_ORDER_ITEM_CONFIRMED: Final[str] = 'order_item_confirmed'
LEDGER_REASON_REDEMPTION_APPROVED: Final[str] = 'redemption_approved'
LEDGER_REASON_MANUAL_ADJUSTMENT: Final[str] = 'manual_adjustment'

# ===============================================================================
# PAGINATION
# ===============================================================================

DEFAULT_PAGE_SIZE: Final[int] = 25
MAX_PAGE_SIZE: Final[int] = 100
