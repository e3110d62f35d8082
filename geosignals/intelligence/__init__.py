"""Weighting, audience estimation, hotspot ranking and flow synthesis."""
