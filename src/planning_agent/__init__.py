"""
Planning agent — SAFe planning across Linear, Confluence and Slack.

This distribution ships the operational notification layer: throttled,
category-routed Slack notifications for planning, sync, health, budget,
workflow and agent events.
"""

__version__ = "0.4.0"
