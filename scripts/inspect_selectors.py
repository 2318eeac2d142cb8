#!/usr/bin/env -S uv run --quiet python
# /// script
# dependencies = [
#   "pychrome",
#   "pyyaml",
# ]
# ///
"""
Selector Table Inspector

Shows, for every target in the selector table, how many elements each matcher
finds in the current Discord view. Use it when Discord changes its UI and
wipecord stops finding controls.

Usage:
    1. Start Chrome with --remote-debugging-port=9222 and open a Discord channel
    2. Hover one of your own messages (and open its "More" menu to check menu items)
    3. Run: ./scripts/inspect_selectors.py [--port 9222] [--selectors my_selectors.yaml]
"""

import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from wipecord.errors import WipecordError
from wipecord.locator import MessageLocator
from wipecord.selector_resolver import SelectorResolver
from wipecord.session import BrowserSession

# Targets looked up inside a message element rather than the whole document
MESSAGE_SCOPED = ("action-container", "more-actions", "edit-direct")


def print_target(resolver: SelectorResolver, target: str, scope):
    rows = resolver.describe(target, scope)
    winner = next((row for row in rows if row["count"]), None)

    status = "✅" if winner else "❌"
    print(f"\n{status} {target}")
    for row in rows:
        marker = "→" if row is winner else " "
        print(f"   {marker} {row['count']:>4}  {row['matcher']}")


def inspect_selectors(port: int, selectors: str | None):
    print("\n" + "=" * 60)
    print("🔍 Inspecting Discord selector table")
    print("=" * 60)

    resolver = SelectorResolver.from_yaml(selectors)
    session = BrowserSession(port=port)

    try:
        session.connect()
        document = session.document()
        print(f"\n📄 Current page: {session.current_url()}")

        print("\n📝 Document-level targets")
        print("-" * 60)
        for target in resolver.table:
            if target not in MESSAGE_SCOPED:
                print_target(resolver, target, document)

        messages = resolver.resolve_all("message", document)
        print(f"\n\n💬 {len(messages)} rendered messages")
        print("-" * 60)

        candidates = MessageLocator(resolver).find_candidates(document, set())
        print(f"   {len(candidates)} look like yours (have owner action controls)")

        if candidates:
            first = candidates[0]
            print(f"\n🎯 Message-level targets on {first.message_id}")
            for target in MESSAGE_SCOPED:
                print_target(resolver, target, first.element)

    except WipecordError as e:
        print(f"❌ {e}")
        sys.exit(1)
    finally:
        session.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check which selectors resolve in Discord")
    parser.add_argument("--port", type=int, default=9222, help="CDP port (default: 9222)")
    parser.add_argument("--selectors", type=str, help="YAML selector table to check")
    args = parser.parse_args()

    inspect_selectors(args.port, args.selectors)
