"""Audit log read endpoints."""
