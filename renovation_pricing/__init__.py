"""Supplier price discovery for the renovation directory."""
