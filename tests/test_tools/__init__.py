"""
Test Tools Package
Tests for the tools module (validators, dose generator, SMS gateway)
"""

__all__ = [
    "test_validators",
    "test_dose_generator",
    "test_sms_gateway",
]
