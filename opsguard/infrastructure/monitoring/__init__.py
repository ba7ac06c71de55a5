"""
Monitoring package.

- **metrics_collector.py**: Prometheus metrics
- **process_sampler.py**: Process memory / CPU counters via psutil
- **models.py**: Snapshot, threshold and alert models
- **resource_monitor.py**: Periodic sampling, alerting and remediation
"""
