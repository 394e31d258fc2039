from __future__ import annotations

import uuid
from pathlib import Path

MACHINE_ID_PATHS: tuple[Path, ...] = (
    Path("/etc/machine-id"),
    Path("/var/lib/dbus/machine-id"),
)


def read_device_id(paths: tuple[Path, ...] = MACHINE_ID_PATHS) -> str:
    """Return a stable identifier for this machine.

    Prefers the OS machine id and falls back to the hardware address.
    """
    for path in paths:
        try:
            value = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            continue
        if value:
            return value
    return f"{uuid.getnode():012x}"
