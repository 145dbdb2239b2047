"""Scheduling engine: fragmenting, aggregation, validation and week payloads."""
