"""Building blocks for request-driven HTTP autoscaling: rate buckets, queue counters, routing tables and endpoint helpers."""

__version__ = "0.1.0"