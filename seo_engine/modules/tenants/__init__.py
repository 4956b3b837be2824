"""Tenant records and tenant identification."""
