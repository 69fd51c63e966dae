"""Metric aggregation by name and labels, and Prometheus text-format rendering."""