"""Basic usage example for crontinject.

This example shows:
1. An interval node that also fires once right after start
2. A named rule node (every 2 minutes)
3. Forcing a fire with one-off props
4. Previewing upcoming dates of a rule without scheduling it
"""

import asyncio
import logging
from datetime import datetime

from crontinject import InjectConfig, InjectNode, NodeRegistry, PropertySpec, PropertyType
from crontinject.management import InjectControl

logging.basicConfig(level=logging.INFO)


async def main():
    """Run two nodes for a few seconds and print what they send."""
    print("crontinject Basic Usage Example")
    print("=" * 60)

    async def show(msg: dict):
        print(f"  -> {msg}")

    heartbeat = InjectNode(
        InjectConfig(
            props=[
                PropertySpec("payload", "iso", PropertyType.DATE),
                PropertySpec("topic", "heartbeat"),
            ],
            repeat=2,
            once=True,
        ),
        send=show,
        node_id="heartbeat",
    )

    report = InjectNode(
        InjectConfig.from_dict(
            {
                "props": [
                    {"p": "payload", "v": '{"rows": [3, 5, 8]}', "vt": "json"},
                    {"p": "total", "v": "sum(payload.rows)", "vt": "jmespath"},
                ],
                "crontiMethod": "everyNMinutes",
                "crontiArgs": "[2]",
            }
        ),
        send=show,
        node_id="report",
    )

    registry = NodeRegistry()
    registry.register(heartbeat)
    registry.register(report)
    control = InjectControl(registry)

    async with heartbeat, report:
        print("\n1. Waiting for heartbeats...")
        await asyncio.sleep(5)

        print("\n2. Forcing the report node with one-off props...")
        control.force_fire("report", [{"p": "payload", "v": "manual", "vt": "str"}])

        print("\n3. Node states:")
        for info in control.list_nodes():
            print(f"   {info['id']}: {info['status']} ({info['timing']}), {info['fires']} fire(s)")

    print("\n4. Next dates of 'onWeekDays' (Mon, Wed, Fri at 09:30):")
    for date in control.preview_next_dates("onWeekDays", [[1, 3, 5], "09:30"], after=datetime.now()):
        print(f"   {date:%a %Y-%m-%d %H:%M}")

    print("\n" + "=" * 60)
    print("Done")


if __name__ == "__main__":
    asyncio.run(main())
