"""
Raspberry Pi Compute Module 4 stock monitor package.

This package polls the Adafruit CM4 product page, detects variants coming
back into stock and announces them on Discord and/or Slack.  See README.md
for details.
"""

__all__ = [
    "config",
    "detector",
    "dispatcher",
    "exceptions",
    "main",
    "notifier",
    "provisioning",
    "scraper",
    "slack",
    "utils",
    "variants",
]
