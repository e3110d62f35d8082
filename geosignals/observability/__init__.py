"""Provenance builders, envelope audit and scan tracing."""
