# ===============================================================================
# API THROTTLING CLASSES 🚦
# ===============================================================================

from rest_framework.permissions import SAFE_METHODS
from rest_framework.request import Request
from rest_framework.throttling import UserRateThrottle

# Function views carry no ``throttle_scope``; the scope lives on the class so
# each limit is keyed per user under its own rate.


class SubmissionThrottle(UserRateThrottle):
    """Order and redemption submission by opticians (writes only)"""
    scope = 'marketplace_submit'

    def allow_request(self, request: Request, view) -> bool:
        if request.method in SAFE_METHODS:
            return True
        return super().allow_request(request, view)


class LedgerActionThrottle(UserRateThrottle):
    """Back-office actions that move stock or points"""
    scope = 'ledger_action'


class MarketplaceReadThrottle(UserRateThrottle):
    """Listings, balances and summaries (reads only)"""
    scope = 'marketplace_read'

    def allow_request(self, request: Request, view) -> bool:
        if request.method not in SAFE_METHODS:
            return True
        return super().allow_request(request, view)
