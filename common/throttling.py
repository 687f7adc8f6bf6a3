"""Scoped throttle shared by the warehouse endpoints.

Reads rates from Django settings at request time (instead of at class
definition) so ``override_settings`` in tests takes effect.
"""

from django.conf import settings
from rest_framework.throttling import ScopedRateThrottle, UserRateThrottle


class WarehouseScopedRateThrottle(ScopedRateThrottle):
    def get_rate(self):
        rates = getattr(settings, "REST_FRAMEWORK", {}).get("DEFAULT_THROTTLE_RATES", {})
        return rates.get(self.scope)


WAREHOUSE_THROTTLES = [WarehouseScopedRateThrottle, UserRateThrottle]
