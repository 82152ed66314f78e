"""Daily plan generation engine for ADHD-friendly task planning."""

__version__ = "0.1.0"
