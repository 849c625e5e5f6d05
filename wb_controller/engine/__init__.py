"""Invocation engine: lifecycle controller, sequencer and cancellation watcher."""
