"""
MCP tool surface (handlers in ``tools``, FastMCP wiring in ``server``).
"""
