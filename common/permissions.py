"""Capability checks for warehouse actions.

Services never decide who may do what. They receive a ``can(action) -> bool``
callable and refuse with ``PermissionDeniedError`` when it says no. Views build
that callable from the request user through the configured oracle
(``WAREHOUSE_CAPABILITY_ORACLE``).
"""

from functools import partial
from typing import Callable

from django.conf import settings
from django.utils.module_loading import import_string

from .exceptions import PermissionDeniedError

CREATE_TRANSFER = "CREATE_TRANSFER"
APPROVE_TRANSFER = "APPROVE_TRANSFER"
PICK_TRANSFER = "PICK_TRANSFER"
RECEIVE_TRANSFER = "RECEIVE_TRANSFER"
ADJUST_INVENTORY = "ADJUST_INVENTORY"
CREATE_PO = "CREATE_PO"
APPROVE_PO = "APPROVE_PO"
RECEIVE_DELIVERY = "RECEIVE_DELIVERY"

# Action name -> Django permission string
ACTION_PERMISSIONS = {
    CREATE_TRANSFER: "transfers.add_stocktransfer",
    APPROVE_TRANSFER: "transfers.approve_stocktransfer",
    PICK_TRANSFER: "transfers.pick_stocktransfer",
    RECEIVE_TRANSFER: "transfers.receive_stocktransfer",
    ADJUST_INVENTORY: "inventory.adjust_materiallot",
    CREATE_PO: "procurement.add_purchaseorder",
    APPROVE_PO: "procurement.approve_purchaseorder",
    RECEIVE_DELIVERY: "procurement.receive_delivery",
}

Capability = Callable[[str], bool]


def allow_all(action: str) -> bool:
    return True


def django_permission_oracle(user, action: str) -> bool:
    """Superusers may do anything; everyone else needs the mapped model permission."""
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    if getattr(user, "is_superuser", False):
        return True
    perm = ACTION_PERMISSIONS.get(action)
    if perm is None:
        return False
    return user.has_perm(perm)


def capability_for(user) -> Capability:
    oracle = import_string(
        getattr(settings, "WAREHOUSE_CAPABILITY_ORACLE", "common.permissions.django_permission_oracle")
    )
    return partial(oracle, user)


def actor_of(request) -> str:
    """Name recorded on audit rows for the requesting user."""
    user = getattr(request, "user", None)
    if user is None or not getattr(user, "is_authenticated", False):
        return ""
    return user.get_username()


def require(can: Capability | None, action: str) -> None:
    """Raise PermissionDeniedError unless ``can`` allows ``action``.

    ``can=None`` is how internal callers (commands, other services) skip the check.
    """
    if can is not None and not can(action):
        raise PermissionDeniedError(f"Not allowed to {action.lower().replace('_', ' ')}", errors={"action": action})
