"""Tests for HidapiBackend with the hid module mocked out."""
import unittest
from unittest.mock import MagicMock, patch

from mpg_pendant.errors import HidTransportError
from mpg_pendant.transport import HidDeviceHandle

try:
    from mpg_pendant.transport.hidapi import HidapiBackend
    HIDAPI_AVAILABLE = True
except ImportError:
    HIDAPI_AVAILABLE = False

PATH = "/dev/hidraw4"


@unittest.skipUnless(HIDAPI_AVAILABLE, "hidapi not installed")
class TestHidapiBackend(unittest.TestCase):
    """Test HidapiBackend against a mocked hid module."""

    def setUp(self):
        self.hid_patcher = patch('mpg_pendant.transport.hidapi.hid')
        self.mock_hid = self.hid_patcher.start()
        self.mock_device = MagicMock()
        self.mock_hid.device.return_value = self.mock_device
        self.backend = HidapiBackend()

    def tearDown(self):
        self.backend.dispose()
        self.hid_patcher.stop()

    def test_enumerate(self):
        """Test enumerate converts hid dicts to HidDeviceInfo."""
        self.mock_hid.enumerate.return_value = [{
            'path': b'/dev/hidraw4',
            'vendor_id': 0x10CE,
            'product_id': 0xEB93,
            'serial_number': '',
            'manufacturer_string': 'KTURT.LTD',
            'product_string': None,
            'usage_page': 0xFF00,
            'usage': 0x01,
            'interface_number': 0,
        }]

        devices = self.backend.enumerate(0x10CE, 0xEB93)

        self.mock_hid.enumerate.assert_called_once_with(0x10CE, 0xEB93)
        self.assertEqual(len(devices), 1)
        self.assertEqual(devices[0].path, PATH)
        self.assertEqual(devices[0].manufacturer, 'KTURT.LTD')
        self.assertEqual(devices[0].product, '')
        self.assertEqual(devices[0].interface_number, 0)

    def test_open_uses_path_bytes(self):
        """Test open passes the path to hidapi as bytes."""
        handle = self.backend.open(PATH)

        self.assertEqual(handle, HidDeviceHandle(PATH))
        self.mock_device.open_path.assert_called_once_with(b'/dev/hidraw4')

    def test_open_failure(self):
        """Test an open failure raises HidTransportError with the path."""
        self.mock_device.open_path.side_effect = OSError("open failed")

        with self.assertRaises(HidTransportError) as ctx:
            self.backend.open(PATH)

        self.assertEqual(ctx.exception.path, PATH)

    def test_read_converts_timeout(self):
        """Test read passes the timeout in milliseconds."""
        self.mock_device.read.return_value = [0x04, 0, 0, 0, 0x0D, 0x11, 0x01, 0]
        handle = self.backend.open(PATH)

        data = self.backend.read(handle, 8, timeout=0.1)

        self.mock_device.read.assert_called_once_with(8, 100)
        self.assertEqual(data, bytes([0x04, 0, 0, 0, 0x0D, 0x11, 0x01, 0]))

    def test_read_timeout_returns_empty(self):
        """Test a read timeout returns empty bytes."""
        self.mock_device.read.return_value = []
        handle = self.backend.open(PATH)

        self.assertEqual(self.backend.read(handle, 8, timeout=0.002), b"")
        self.mock_device.read.assert_called_once_with(8, 2)

    def test_read_error(self):
        """Test a read error raises HidTransportError."""
        self.mock_device.read.side_effect = OSError("read error")
        handle = self.backend.open(PATH)

        with self.assertRaises(HidTransportError):
            self.backend.read(handle, 8, timeout=0.1)

    def test_read_unknown_handle(self):
        """Test reading an unopened handle raises HidTransportError."""
        with self.assertRaises(HidTransportError):
            self.backend.read(HidDeviceHandle(PATH), 8)

    def test_send_feature_report(self):
        """Test feature reports are passed through unchanged."""
        self.mock_device.send_feature_report.return_value = 8
        handle = self.backend.open(PATH)

        self.backend.send_feature_report(handle, bytes([0x06, 0xFE, 0xFD, 0xFE, 0, 0, 0, 0]))

        self.mock_device.send_feature_report.assert_called_once_with(
            bytes([0x06, 0xFE, 0xFD, 0xFE, 0, 0, 0, 0])
        )

    def test_send_feature_report_negative_result(self):
        """Test a negative hidapi result raises HidTransportError."""
        self.mock_device.send_feature_report.return_value = -1
        self.mock_device.error.return_value = "broken pipe"
        handle = self.backend.open(PATH)

        with self.assertRaises(HidTransportError):
            self.backend.send_feature_report(handle, bytes(8))

    def test_close_and_dispose(self):
        """Test close is idempotent and dispose closes what is left."""
        handle = self.backend.open(PATH)
        self.backend.close(handle)
        self.backend.close(handle)

        self.mock_device.close.assert_called_once()

        self.backend.open(PATH)
        self.backend.dispose()
        self.assertEqual(self.mock_device.close.call_count, 2)


if __name__ == '__main__':
    unittest.main()
