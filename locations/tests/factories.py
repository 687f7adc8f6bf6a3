import factory
from common.choices import LocationType
from factory.django import DjangoModelFactory
from locations.models import Location


class LocationFactory(DjangoModelFactory):
    class Meta:
        model = Location

    code = factory.Sequence(lambda n: f"BIN-{n:03d}")
    name = factory.LazyAttribute(lambda o: f"Bin {o.code}")
    type = LocationType.BIN
    is_active = True
    is_pickable = True
    is_receivable = True


class WarehouseFactory(LocationFactory):
    code = factory.Sequence(lambda n: f"WH-{n}")
    name = factory.Faker("company")
    type = LocationType.WAREHOUSE


class TruckFactory(LocationFactory):
    code = factory.Sequence(lambda n: f"TRK-{n:02d}")
    type = LocationType.TRUCK
    vehicle_id = factory.Sequence(lambda n: f"VAN-{n}")
    license_plate = factory.Faker("license_plate")


class JobsiteFactory(LocationFactory):
    code = factory.Sequence(lambda n: f"JOB-{n:03d}")
    type = LocationType.JOBSITE
    project_id = factory.Sequence(lambda n: f"PRJ-{n}")
    project_name = factory.Faker("street_name")
    address = factory.Faker("street_address")
