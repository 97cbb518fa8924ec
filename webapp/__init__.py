"""Inbound HTTP surface for the QA hand-off."""
