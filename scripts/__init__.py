"""Operational scripts for the project.

Scripts live under `scripts.ops`. Run them as modules, e.g.
`python -m scripts.ops.send_prediction_reminders --dry-run`.
"""
