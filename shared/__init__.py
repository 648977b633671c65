"""
Shared utilities for the Visibility Logic service.

This package aggregates common building blocks:

- config: Service configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Cross-cutting logic should live here to avoid import cycles. Do not
import from service_* packages into shared/.
"""
