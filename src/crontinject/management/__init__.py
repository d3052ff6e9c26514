"""Control API for live inject nodes.

This module provides a pure Python API for firing nodes on demand and
previewing rule schedules. It has NO web framework dependencies and can be
used by:
- Web adapters (crontinject.admin.fastapi)
- CLI tools
- Testing utilities

Example:
    from crontinject import NodeRegistry
    from crontinject.management import InjectControl

    registry = NodeRegistry()
    control = InjectControl(registry)

    result = control.force_fire("node-1")
    dates = control.preview_next_dates("everyNthDay", [2, "09:30"])
"""

from crontinject.management.control import InjectControl

__all__ = ["InjectControl"]
