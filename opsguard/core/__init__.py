"""Core layer: configuration, logging, fault taxonomy and resilience primitives."""
