"""Geometry parsing, jurisdiction filtering, polygon building and geo clients."""
