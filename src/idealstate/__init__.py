"""Ideal State Criteria tracker: criteria tables, their workflow, and persistence."""

__version__ = "0.1.0"
