"""MCP server exposing per-stage delta-v analysis of KSP vessels over kRPC."""

__version__ = "0.1.0"
