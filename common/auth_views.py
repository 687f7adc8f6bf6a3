"""JWT token endpoints for warehouse staff (scanners, office, drivers)."""

import logging

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import AllowAny
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

logger = logging.getLogger("floorops.auth")


def log_token_event(action: str, request, status: str) -> None:
    logger.info(
        "auth_event",
        extra={"event": "auth_event", "action": action, "ip": request.META.get("REMOTE_ADDR"), "status": status},
    )


class TokenView(TokenObtainPairView):
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "token"

    @extend_schema(tags=["Auth"], summary="Obtain access and refresh tokens")
    def post(self, request, *args, **kwargs):
        resp = super().post(request, *args, **kwargs)
        log_token_event("token_obtain", request, "success" if resp.status_code == 200 else "failed")
        return resp


class RefreshView(TokenRefreshView):
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "token"

    @extend_schema(tags=["Auth"], summary="Refresh access token")
    def post(self, request, *args, **kwargs):
        resp = super().post(request, *args, **kwargs)
        log_token_event("token_refresh", request, "success" if resp.status_code == 200 else "failed")
        return resp


# EOF
