"""Supplier price discovery: platform detection, price extraction and search strategies."""
