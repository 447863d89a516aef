"""Adapters connecting the editorial pipeline to storage and HTTP services."""
