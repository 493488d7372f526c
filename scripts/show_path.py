"""
Fetch a progress snapshot and print the resolved screen and path nodes.

Usage: python scripts/show_path.py <phone>
Base URL comes from API_BASE_URL (or .env).
"""
import asyncio
import os
import sys

# Ensure we can import pelekan from a checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pelekan.api.client import ProgressionClient
from pelekan.engines.path.classifier import NodeKind, active_index
from pelekan.logging_config import configure_from_settings
from pelekan.orchestration.screen import ScreenCoordinator


def describe(node) -> str:
    if node.kind == NodeKind.RESULTS:
        return f"[results] done={node.done}"
    if node.kind == NodeKind.HEADER:
        flag = " (upcoming)" if node.upcoming else ""
        return f"== {node.stage.code} {node.stage.title}{flag}"
    if node.kind == NodeKind.SPACER:
        return ""
    mark = " *terminal*" if node.terminal else ""
    return f"  {node.zig.value}  day {node.day.global_day_number:>3}  {node.access.value}{mark}"


async def main():
    if len(sys.argv) < 2:
        print("usage: show_path.py <phone>", file=sys.stderr)
        sys.exit(2)
    phone = sys.argv[1]

    configure_from_settings()

    async with ProgressionClient() as client:
        coordinator = ScreenCoordinator(client, phone)
        if not await coordinator.refresh():
            print(f"Refresh failed: {coordinator.error!r}", file=sys.stderr)
            sys.exit(1)

        snap = coordinator.snapshot
        print("=" * 60)
        print(f"  screen: {coordinator.current_screen().value}")
        print(f"  plan: {snap.entitlement.plan_status.value}  days left: {snap.entitlement.days_left}")
        print(f"  access: {snap.treatment_access.value}  paywall: {snap.paywall.needed}")
        print("=" * 60)

        nodes = coordinator.path_nodes()
        for node in nodes:
            line = describe(node)
            if line:
                print(line)
        idx = active_index(nodes)
        print(f"\nactive node: {idx if idx is not None else '-'}")


if __name__ == "__main__":
    asyncio.run(main())
