from procurement import services


def purchase_order(*, quantity="250", unit_cost="4.00", sku="LVP-COAST-OAK", submit=True, **kwargs):
    """A one-line order for Coastal Oak LVP, submitted unless told otherwise."""
    kwargs.setdefault("vendor_name", "Shaw Floors")
    return services.create_purchase_order(
        lines=[{"material_name": "Coastal Oak LVP", "sku": sku, "quantity": quantity, "unit_cost": unit_cost}],
        submit=submit,
        **kwargs,
    )
