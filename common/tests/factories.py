import factory
from django.contrib.auth import get_user_model
from factory.django import DjangoModelFactory


class UserFactory(DjangoModelFactory):
    class Meta:
        model = get_user_model()
        django_get_or_create = ("username",)

    username = factory.Sequence(lambda n: f"picker{n}")
    email = factory.Faker("email")
    password = factory.PostGenerationMethodCall("set_password", "pass")


class ManagerFactory(UserFactory):
    """Superuser: every warehouse capability."""

    username = factory.Sequence(lambda n: f"manager{n}")
    is_staff = True
    is_superuser = True
