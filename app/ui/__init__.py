"""Server-rendered UI fragments."""
