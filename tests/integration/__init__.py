"""
Integration tests.

Exercise the connection registry, the resource health monitor and the
HTTP boundary together, without test doubles for the connection service.
"""
