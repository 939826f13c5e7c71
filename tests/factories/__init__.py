"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation. Factories build
request payloads (plain dicts) for the HTTP API.
"""

from .user import UserFactory
from .business import (
    BusinessFactory,
    ProductFactory,
    FinancialFactory,
)

__all__ = [
    "UserFactory",
    "BusinessFactory",
    "ProductFactory",
    "FinancialFactory",
]
