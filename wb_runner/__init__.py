"""Workload loading and execution for workload-bench."""
