"""Marketplace Shopping MCP - marketplace client exposed as MCP tools"""

__version__ = "1.0.0"
