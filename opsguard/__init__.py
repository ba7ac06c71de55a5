"""
opsguard - fault classification and resource health monitoring for
long-lived connection services.
"""

__version__ = "1.0.0"
