"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import UserFactory

    user = UserFactory()
    online = UserFactory(online=True)
    busy = UserFactory(online=True, presence_status=PresenceStatus.BUSY)
"""

import factory
from django.utils import timezone

from authentication.models import PresenceStatus, User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Users are created through UserManager.create_user() so the password
    is hashed. By default they have never sent a heartbeat and therefore
    read as offline.

    Traits:
        online: Fresh heartbeat with presence "active"

    Examples:
        user = UserFactory(name="Ada")
        online_user = UserFactory(online=True)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    name = factory.Faker("name")
    is_active = True
    is_staff = False

    class Params:
        online = factory.Trait(
            presence_status=PresenceStatus.ACTIVE,
            last_heartbeat=factory.LazyFunction(timezone.now),
        )

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )
