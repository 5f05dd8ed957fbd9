"""Gremlin script client for GraphSON v3 graph databases over WebSocket."""

__version__ = "0.1.0"