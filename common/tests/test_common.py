import logging
from datetime import timedelta

import pytest
from common import permissions
from common.exceptions import (
    ConflictError,
    InsufficientStockError,
    InvariantViolation,
    PermissionDeniedError,
    warehouse_exception_handler,
)
from common.idempotency import compute_request_hash, with_idempotency
from common.models import IdempotencyKey
from common.tests.factories import ManagerFactory, UserFactory
from django.contrib.auth.models import AnonymousUser, Permission
from django.core.management import call_command
from django.http import Http404
from django.utils import timezone
from rest_framework.exceptions import NotAuthenticated
from rest_framework.test import APIClient


def test_domain_errors_render_as_envelope():
    resp = warehouse_exception_handler(InsufficientStockError(requested="500.00", available="450.00"), {})
    assert resp.status_code == 409
    assert resp.data == {
        "code": "insufficient_stock",
        "message": "Insufficient stock",
        "errors": {"requested": "500.00", "available": "450.00"},
        "status": 409,
    }


def test_invariant_violation_is_500_and_logged(caplog):
    with caplog.at_level(logging.CRITICAL, logger="floorops.errors"):
        resp = warehouse_exception_handler(InvariantViolation("lot 4 splits do not add up"), {})
    assert resp.status_code == 500
    assert resp.data["code"] == "invariant_violation"
    assert any(getattr(r, "event", None) == "invariant_violation" for r in caplog.records)


def test_framework_errors_render_as_envelope():
    resp = warehouse_exception_handler(NotAuthenticated(), {})
    assert resp.status_code == 401
    assert resp.data["code"] == "not_authenticated"
    assert resp.data["errors"] is None

    resp = warehouse_exception_handler(Http404(), {})
    assert resp.status_code == 404
    assert resp.data["code"] == "not_found"


def test_unhandled_errors_hide_details():
    resp = warehouse_exception_handler(RuntimeError("db password is hunter2"), {"view": None})
    assert resp.status_code == 500
    assert resp.data["code"] == "internal_server_error"
    assert "hunter2" not in resp.data["message"]


def test_require_respects_capability():
    permissions.require(None, permissions.ADJUST_INVENTORY)
    permissions.require(permissions.allow_all, permissions.ADJUST_INVENTORY)
    with pytest.raises(PermissionDeniedError) as exc:
        permissions.require(lambda action: False, permissions.ADJUST_INVENTORY)
    assert exc.value.errors == {"action": "ADJUST_INVENTORY"}


@pytest.mark.django_db
def test_django_permission_oracle():
    oracle = permissions.django_permission_oracle
    picker = UserFactory()
    manager = ManagerFactory()

    assert oracle(AnonymousUser(), permissions.CREATE_TRANSFER) is False
    assert oracle(None, permissions.CREATE_TRANSFER) is False
    assert oracle(manager, "SOMETHING_NEW") is True
    assert oracle(picker, permissions.CREATE_TRANSFER) is False
    assert oracle(picker, "SOMETHING_NEW") is False

    picker.user_permissions.add(Permission.objects.get(codename="approve_stocktransfer"))
    picker = type(picker).objects.get(id=picker.id)  # drop the permission cache
    assert oracle(picker, permissions.APPROVE_TRANSFER) is True
    assert permissions.capability_for(picker)(permissions.APPROVE_TRANSFER) is True
    assert permissions.capability_for(picker)(permissions.APPROVE_PO) is False


def test_request_hash_is_order_independent():
    assert compute_request_hash({"a": 1, "b": "2"}) == compute_request_hash({"b": "2", "a": 1})
    assert compute_request_hash({"a": 1}) != compute_request_hash({"a": 2})
    assert compute_request_hash({}) is None


@pytest.mark.django_db
def test_with_idempotency_replays_and_guards_payload():
    user = UserFactory()
    calls = []

    def handler():
        calls.append(1)
        return {"ok": True}, 201

    args = {"key": "k1", "user": user, "path": "/x/", "method": "post", "handler": handler}
    assert with_idempotency(request_hash="h1", **args) == ({"ok": True}, 201)
    assert with_idempotency(request_hash="h1", **args) == ({"ok": True}, 201)
    assert len(calls) == 1

    body, code = with_idempotency(request_hash="h2", **args)
    assert code == 409
    assert body["code"] == ConflictError.code

    idem = IdempotencyKey.objects.get(key="k1")
    assert idem.scope == f"user:{user.id}"
    assert idem.method == "POST"


@pytest.mark.django_db
def test_cleanup_idempotency_command(capsys):
    now = timezone.now()
    for key, expires_at in (("old", now - timedelta(hours=1)), ("new", now + timedelta(hours=1))):
        IdempotencyKey.objects.create(key=key, scope="anon", path="/x/", method="POST", expires_at=expires_at)

    call_command("cleanup_idempotency", "--dry-run")
    assert "1 expired" in capsys.readouterr().out
    assert IdempotencyKey.objects.count() == 2

    call_command("cleanup_idempotency")
    assert list(IdempotencyKey.objects.values_list("key", flat=True)) == ["new"]


@pytest.mark.django_db
def test_health_endpoint():
    r = APIClient().get("/health/")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": "ok"}


@pytest.mark.django_db
def test_token_obtain_and_use():
    user = UserFactory(username="dock-scanner")
    user.set_password("s3cret-pass")
    user.save()
    client = APIClient()

    r = client.post("/api/v1/token/", {"username": "dock-scanner", "password": "s3cret-pass"}, format="json")
    assert r.status_code == 200
    tokens = r.json()
    assert {"access", "refresh"} <= set(tokens)

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    assert client.get("/api/v1/locations/").status_code == 200

    r_refresh = APIClient().post("/api/v1/token/refresh/", {"refresh": tokens["refresh"]}, format="json")
    assert r_refresh.status_code == 200


@pytest.mark.django_db
def test_token_endpoint_is_throttled():
    client = APIClient()
    codes = [
        client.post("/api/v1/token/", {"username": "nobody", "password": "wrong"}, format="json").status_code
        for _ in range(11)
    ]
    assert codes[:10] == [401] * 10
    assert codes[10] == 429
