"""List every event stream, then narrow one IP policy rule, using both client styles."""

from __future__ import annotations

import asyncio
import logging
import os
import sys

from ngrok_mgmt import AsyncNgrok, Ngrok, NgrokError


def audit_event_streams() -> int:
    with Ngrok.from_env() as client:
        count = 0
        for stream in client.event_streams.list(limit=50).iter_items():
            count += 1
            print(f"{stream.id}\t{stream.event_type}\tsampling={stream.sampling_rate}")
        return count


async def clear_rule_description(rule_id: str) -> None:
    async with AsyncNgrok.from_env() as client:
        before = await client.ip_policy_rules.get(rule_id)
        after = await client.ip_policy_rules.update(rule_id, description=None)
        print(f"{rule_id}: {before.description!r} -> {after.description!r} ({after.cidr})")


def main() -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    try:
        total = audit_event_streams()
        print(f"{total} event stream(s)")
        rule_id = os.getenv("NGROK_IP_POLICY_RULE_ID")
        if rule_id:
            asyncio.run(clear_rule_description(rule_id))
    except NgrokError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
