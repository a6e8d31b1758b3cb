"""HTTP API for MapGPT."""
