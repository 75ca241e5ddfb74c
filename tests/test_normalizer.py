"""Unit tests for sems_monitor.devices.normalizer.

Normalization is total: every raw value maps to exactly one status,
flag or payment value and nothing raises.
"""

import pytest

from sems_monitor.devices.normalizer import (
    DeviceStatus,
    PaymentStatus,
    encode_flag,
    encode_payment,
    encode_status,
    normalize_bool_flag,
    normalize_payment,
    normalize_status,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("activated", DeviceStatus.ACTIVATED),
        ("Activated:", DeviceStatus.ACTIVATED),
        ("ACTIVATED", DeviceStatus.ACTIVATED),
        (" activated: ", DeviceStatus.ACTIVATED),
        ("deactivated:", DeviceStatus.DEACTIVATED),
        ("Deactivated", DeviceStatus.DEACTIVATED),
        ("", DeviceStatus.UNKNOWN),
        (None, DeviceStatus.UNKNOWN),
        ("activated::", DeviceStatus.UNKNOWN),
        ("active", DeviceStatus.UNKNOWN),
        (1, DeviceStatus.UNKNOWN),
        ({"status": "activated"}, DeviceStatus.UNKNOWN),
    ],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) is expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("true:", True),
        ("true", True),
        (True, True),
        ("TRUE", True),
        ("false:", False),
        (False, False),
        (None, False),
        ("garbage", False),
        ("", False),
        (1, False),
    ],
)
def test_normalize_bool_flag(raw, expected):
    assert normalize_bool_flag(raw) is expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("true:", PaymentStatus.PAID),
        ("true", PaymentStatus.PAID),
        (True, PaymentStatus.PAID),
        ("false:", PaymentStatus.PENDING),
        ("pending", PaymentStatus.PENDING),
        (None, PaymentStatus.PENDING),
        (0, PaymentStatus.PENDING),
    ],
)
def test_normalize_payment(raw, expected):
    assert normalize_payment(raw) is expected


def test_normalizing_normalized_values_is_stable():
    for status in DeviceStatus:
        assert normalize_status(status) is status
        assert normalize_status(status.value) is status
    for payment in PaymentStatus:
        assert normalize_payment(payment) is payment
        assert normalize_payment(payment.value) is payment


def test_encoders_round_trip_through_normalizer():
    assert encode_status(DeviceStatus.ACTIVATED) == "activated:"
    assert encode_status(DeviceStatus.DEACTIVATED) == "deactivated:"
    assert encode_status(DeviceStatus.UNKNOWN) == ""
    assert encode_flag(True) == "true:"
    assert encode_payment(PaymentStatus.PENDING) == "false:"

    for status in (DeviceStatus.ACTIVATED, DeviceStatus.DEACTIVATED):
        assert normalize_status(encode_status(status)) is status
    for payment in PaymentStatus:
        assert normalize_payment(encode_payment(payment)) is payment
