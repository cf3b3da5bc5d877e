"""Experiment Lab time-series overlay engine."""
