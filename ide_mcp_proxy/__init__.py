"""
MCP proxy for the JetBrains IDE tool API.
Finds the running IDE on localhost, forwards tool calls to it and reports tool list changes.
"""

__version__ = "0.1.0"
