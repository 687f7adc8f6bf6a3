from datetime import timedelta

import factory
from acclimation.models import AcclimationEntry
from common.choices import MaterialType
from django.utils import timezone
from factory.django import DjangoModelFactory


class AcclimationEntryFactory(DjangoModelFactory):
    class Meta:
        model = AcclimationEntry

    material_name = "Coastal Oak LVP"
    material_type = MaterialType.LVP
    location = factory.Faker("street_address")
    project_id = "PRJ-7"
    start_time = factory.LazyFunction(lambda: timezone.now() - timedelta(hours=1))
    required_hours = 48
    min_temp = 65
    max_temp = 85
    min_humidity = 30
    max_humidity = 60
