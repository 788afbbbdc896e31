"""Tests for mapping Deye records to Google devices."""

import pytest

from smarthome.devices import (
    DEFAULT_DEVICE_NAME,
    TRAIT_ON_OFF,
    TYPE_LIGHT,
    TYPE_SWITCH,
    classify_product_type,
    map_deye_device,
)


@pytest.mark.parametrize("product_type", ["Hybrid Inverter", "INVERTER", "Lithium Battery", "micro-inverter"])
def test_inverters_and_batteries_are_switches(product_type):
    device = map_deye_device({"deviceSn": "X1", "productType": product_type})

    assert device.type == TYPE_SWITCH
    assert device.traits == (TRAIT_ON_OFF,)


@pytest.mark.parametrize("product_type", [None, "", "Smart Meter", 42])
def test_other_products_default_to_light(product_type):
    device = map_deye_device({"deviceSn": "X1", "productType": product_type})

    assert device.type == TYPE_LIGHT
    assert device.traits == (TRAIT_ON_OFF,)


def test_missing_product_type_is_light():
    assert classify_product_type(None) == (TYPE_LIGHT, (TRAIT_ON_OFF,))


def test_google_shape_for_named_inverter():
    device = map_deye_device({
        "deviceSn": "2306123456",
        "deviceName": "Garage Inverter",
        "productType": "Hybrid Inverter",
    }).to_google()

    assert device == {
        "id": "2306123456",
        "type": TYPE_SWITCH,
        "traits": [TRAIT_ON_OFF],
        "name": {
            "defaultNames": ["Garage Inverter"],
            "name": "Garage Inverter",
            "nicknames": ["Garage Inverter"],
        },
        "willReportState": True,
        "deviceInfo": {
            "manufacturer": "Deye",
            "model": "Hybrid Inverter",
            "hwVersion": "1.0",
            "swVersion": "1.0",
        },
    }


def test_name_falls_back_to_name_field_then_default():
    named = map_deye_device({"sn": "S1", "name": "Roof"}).to_google()
    assert named["id"] == "S1"
    assert named["name"]["name"] == "Roof"
    assert named["name"]["nicknames"] == ["Roof"]
    assert named["name"]["defaultNames"] == [DEFAULT_DEVICE_NAME]

    anonymous = map_deye_device({"deviceSn": "S2"}).to_google()
    assert anonymous["name"]["name"] == DEFAULT_DEVICE_NAME
    assert anonymous["deviceInfo"]["model"] == "Unknown"


def test_device_sn_preferred_over_sn():
    assert map_deye_device({"deviceSn": "A", "sn": "B"}).id == "A"


def test_mapping_is_total_for_malformed_records():
    assert map_deye_device({}).type == TYPE_LIGHT
    assert map_deye_device(None).display_name == DEFAULT_DEVICE_NAME
    assert map_deye_device("garbage").id is None


def test_mapping_is_deterministic():
    record = {"deviceSn": "A", "productType": "Battery"}
    assert map_deye_device(record) == map_deye_device(dict(record))
