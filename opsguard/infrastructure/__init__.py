"""Infrastructure layer: process sampling, metrics and resource monitoring."""
