"""Controller facade for benchmark invocations.

Prefer importing from `wb_controller.api`.
"""
