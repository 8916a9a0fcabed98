"""Ground Truth MCP Server.

Check self-generated claims against live data (endpoints, package registries,
pricing pages) before presenting them as fact.
"""

__version__ = "0.2.0"
