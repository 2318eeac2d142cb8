"""
Wipecord

Wipe and delete your own Discord messages through the Discord web UI, driven
over the Chrome DevTools Protocol.

Modules:
- selector_resolver: Data-driven selector chains for semantic UI targets
- locator: Find your own, not yet processed messages in the live view
- sequencer: Per-message wipe (edit to blank) and delete state machine
- pagination: Scroll the message pane or search results for more messages
- strategies: Channel scan and author search discovery strategies
- controller: Run loop, limits, termination and outcome reporting
- session: Chrome connection, navigation and login wait
"""

__version__ = "0.1.0"
__author__ = "Stephen Mangrum"
