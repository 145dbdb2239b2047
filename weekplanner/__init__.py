"""Shared weekly time-block planner.

Core scheduling engine (fragmenting, aggregation, validation, payloads) plus
thin store and service layers around it.
"""

__version__ = "0.1.0"
