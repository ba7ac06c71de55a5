"""
Exception Module

Fault taxonomy and classified errors for the whole service.

Module Structure:
-----------------
- **taxonomy.py**: ErrorCode / ErrorType / Severity and the four lookup tables
- **base.py**: ClassifiedError value type with public and verbose renderings
- **factory.py**: Constructors for well-known failure situations
- **classifier.py**: Heuristic conversion of native failures
- **handling.py**: log_failure / format_for_transport for boundary layers

Usage:
------
```python
from opsguard.core.exceptions import classify, factory, format_for_transport

try:
    ...
except Exception as exc:
    error = classify(exc, {"resource": "Session"})
    body = format_for_transport(error, verbose=False)
```

Author: System Architect
Date: 2026-10-16
"""

from opsguard.core.exceptions import factory
from opsguard.core.exceptions.base import ClassifiedError, serialize_cause
from opsguard.core.exceptions.classifier import FailureLike, NativeFailure, classify
from opsguard.core.exceptions.handling import (
    format_for_transport,
    generate_correlation_id,
    log_failure,
)
from opsguard.core.exceptions.taxonomy import (
    ErrorCode,
    ErrorType,
    Severity,
    TaxonomyError,
    error_type_for,
    message_for,
    severity_for,
    status_for,
    validate_taxonomy,
)

__all__ = [
    # Taxonomy
    "ErrorCode",
    "ErrorType",
    "Severity",
    "TaxonomyError",
    "error_type_for",
    "message_for",
    "severity_for",
    "status_for",
    "validate_taxonomy",
    # Errors
    "ClassifiedError",
    "serialize_cause",
    "factory",
    # Classification
    "FailureLike",
    "NativeFailure",
    "classify",
    # Boundary helpers
    "format_for_transport",
    "generate_correlation_id",
    "log_failure",
]
