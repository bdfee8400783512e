"""Outbound sinks: Slack webhook and Rich console."""
