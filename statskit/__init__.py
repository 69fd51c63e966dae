"""Tags, typed values, Linux process statistics and Prometheus text output for metrics."""

__version__ = "5.2.0"