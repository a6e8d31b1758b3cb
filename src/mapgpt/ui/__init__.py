"""Gradio UI for MapGPT."""

from .app import MapGPTClient, build_interface, launch

__all__ = ["MapGPTClient", "build_interface", "launch"]
