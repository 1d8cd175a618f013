"""Adapters connecting the swap core to storage and external systems."""
