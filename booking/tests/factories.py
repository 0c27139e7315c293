"""Test factories for creating test data."""
import factory
from django.contrib.auth.models import User
from django.utils import timezone
from datetime import timedelta
from booking.models import Resource, ResourcePart, Booking, BookingStatus


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda obj: f"{obj.username}@test.com")
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    is_active = True


class StaffUserFactory(UserFactory):
    is_staff = True


class ResourceFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Resource

    name = factory.Sequence(lambda n: f"Sports Hall {n}")
    description = factory.Faker('text', max_nb_chars=200)
    location = factory.Faker('city')
    is_active = True
    requires_approval = False
    pricing_model = 'FREE'


class ResourcePartFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ResourcePart

    resource = factory.SubFactory(ResourceFactory)
    name = factory.Sequence(lambda n: f"Part {n}")
    is_active = True


class BookingFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Booking

    resource = factory.SubFactory(ResourceFactory)
    user = factory.SubFactory(UserFactory)
    title = factory.Faker('sentence', nb_words=3)
    description = factory.Faker('text', max_nb_chars=200)
    start_time = factory.LazyFunction(
        lambda: timezone.now().replace(minute=0, second=0, microsecond=0) + timedelta(days=1)
    )
    end_time = factory.LazyAttribute(lambda obj: obj.start_time + timedelta(hours=2))
    status = BookingStatus.APPROVED
