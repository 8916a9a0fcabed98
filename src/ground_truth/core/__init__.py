"""Core verification engine — cache, fetch, registry clients, extractors, runners.

This module is framework-agnostic. It has no dependency on MCP or FastMCP;
the server wraps these functions as tools.
"""
