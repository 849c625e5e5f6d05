"""Command-line front end for workload-bench."""
