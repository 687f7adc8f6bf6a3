from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class IdempotencyKey(TimeStampedModel):
    """Stores the result of a replayable warehouse mutation.

    Handheld scanners queue check-ins and transfer steps while offline and
    resend them on reconnect; the stored response is returned for the replay.
    """

    key = models.CharField(max_length=128)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.CASCADE)
    scope = models.CharField(max_length=128)
    path = models.CharField(max_length=255)
    method = models.CharField(max_length=16)
    request_hash = models.CharField(max_length=64, null=True, blank=True)
    response_code = models.IntegerField(null=True, blank=True)
    response_json = models.JSONField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["key", "scope", "path", "method"], name="uniq_idem_scope_path_method"),
        ]
        indexes = [
            models.Index(fields=["expires_at"], name="common_idem_expires_at_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"IdempotencyKey<{self.key}> {self.method} {self.path}"
