import tempfile
import unittest
import uuid
from pathlib import Path

from basekit.device import read_device_id


class DeviceIdTests(unittest.TestCase):
    def test_prefers_first_non_empty_machine_id(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            empty = Path(tmp) / "empty"
            empty.write_text("\n", encoding="utf-8")
            machine_id = Path(tmp) / "machine-id"
            machine_id.write_text("0123abcd\n", encoding="utf-8")

            value = read_device_id((Path(tmp) / "missing", empty, machine_id))

        self.assertEqual(value, "0123abcd")

    def test_falls_back_to_hardware_address(self) -> None:
        value = read_device_id((Path("/nonexistent/machine-id"),))

        self.assertEqual(value, f"{uuid.getnode():012x}")
