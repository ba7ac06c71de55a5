"""HTTP API: routes, models, dependencies and middleware."""
