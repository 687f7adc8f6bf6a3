import factory
from factory.django import DjangoModelFactory
from inventory import services
from inventory.models import InventoryItem


class InventoryItemFactory(DjangoModelFactory):
    class Meta:
        model = InventoryItem

    sku = factory.Sequence(lambda n: f"LVP-{n:04d}")
    name = factory.Faker("sentence", nb_words=3)
    unit = "sqft"
    category = "lvp"


def receive(item, location, quantity, *, dye_lot="", lot_number=None, unit_cost="4.00", **kwargs):
    """Put a lot on the shelf through the ledger so totals stay consistent."""
    return services.receive_lot(
        item_id=item.id,
        location_id=location.id,
        lot_number=lot_number or f"L-{item.sku}-{dye_lot or 'X'}",
        dye_lot=dye_lot,
        quantity=quantity,
        unit_cost=unit_cost,
        **kwargs,
    )
