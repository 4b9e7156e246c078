from __future__ import annotations

import re

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from rest_framework.throttling import SimpleRateThrottle

_RATE_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d*)\s*([smhd])\w*\s*$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_window_rate(rate: str) -> tuple[int, int]:
    """Parse "<count>/<n><unit>" such as "5/15m" into (count, seconds)."""
    match = _RATE_RE.match(rate or "")
    if not match:
        raise ImproperlyConfigured(f"Invalid throttle rate: {rate!r}")
    count, multiplier, unit = match.groups()
    return int(count), int(multiplier or 1) * _UNIT_SECONDS[unit]


class SensitiveOperationThrottle(SimpleRateThrottle):
    """
    Per-user limit on sensitive operations, counted in the Django cache so
    every process behind the same cache backend shares one budget.
    """

    scope = "sensitive"

    def get_rate(self):
        return getattr(settings, "SENSITIVE_OPERATION_RATE", "5/15m")

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        return parse_window_rate(rate)

    def get_cache_key(self, request, view):
        if request.user and request.user.is_authenticated:
            ident = request.user.pk
        else:
            ident = self.get_ident(request)
        return self.cache_format % {"scope": self.scope, "ident": ident}
