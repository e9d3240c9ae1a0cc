"""Core download and progress-monitoring components."""
