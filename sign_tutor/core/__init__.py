"""Shared domain types and the tracking session pipeline."""
