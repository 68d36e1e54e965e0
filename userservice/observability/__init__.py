"""Observability: structured logging, distributed tracing, metrics.

Provides standardized observability primitives using structlog for logging,
OpenTelemetry for tracing and metric export, and Prometheus for scraping.
"""
