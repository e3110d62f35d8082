"""Choropleth classification."""
