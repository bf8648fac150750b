from __future__ import annotations

from adbr.devices import Device, parse_devices


def test_parse_devices_reads_long_listing() -> None:
    output = """* daemon not running; starting now at tcp:5037
* daemon started successfully
List of devices attached
emulator-5554          device product:sdk_gphone64 model:Pixel_7 device:emu64a transport_id:1
0123456789ABCDEF       unauthorized usb:1-1 transport_id:2
192.168.0.5:5555       offline transport_id:3

"""

    devices = parse_devices(output)

    assert [device.serial for device in devices] == ["emulator-5554", "0123456789ABCDEF", "192.168.0.5:5555"]
    first = devices[0]
    assert first.online is True
    assert first.model == "Pixel_7"
    assert first.transport_id == "1"
    assert first.attributes["product"] == "sdk_gphone64"
    assert devices[1].state == "unauthorized"
    assert devices[1].attributes["usb"] == "1-1"
    assert devices[2].online is False


def test_parse_devices_handles_no_permissions_state() -> None:
    output = "List of devices attached\nSER1\tno permissions (user not in plugdev group) usb:1-2\n"

    devices = parse_devices(output)

    assert len(devices) == 1
    assert devices[0].state == "no permissions"
    assert devices[0].attributes == {"usb": "1-2"}


def test_parse_devices_short_listing_and_empty_output() -> None:
    assert parse_devices("List of devices attached\nSER\tdevice\n") == [Device(serial="SER", state="device")]
    assert parse_devices("List of devices attached\n\n") == []
    assert parse_devices("") == []
