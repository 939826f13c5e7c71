"""
User test factory.

Generates registration payloads for testing authentication.
"""

import factory
from faker import Faker

fake = Faker()


class UserFactory(factory.Factory):
    """
    Factory for generating POST /register payloads.

    Usage:
        payload = UserFactory()
        payload = UserFactory(username="custom")
    """

    class Meta:
        model = dict

    username = factory.Sequence(lambda n: f"user{n:03d}")
    email = factory.LazyAttribute(lambda obj: f"{obj.username}@example.com")
    password = factory.LazyFunction(lambda: fake.password(length=12))
