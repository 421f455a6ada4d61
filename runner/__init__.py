"""Endpoint and database probes for the DataViz backend."""
