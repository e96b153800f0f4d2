from prometheus_client import CollectorRegistry

# Dedicated registry so seed metrics never mix with process/platform collectors.
REGISTRY = CollectorRegistry()
