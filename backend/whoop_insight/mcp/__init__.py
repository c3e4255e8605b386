"""
MCP (Model Context Protocol) Server Module

提供 FastMCP 服务器，支持 Claude Desktop 等客户端通过 stdio 连接
"""
from .server import mcp, get_mcp_server

__all__ = ["mcp", "get_mcp_server"]
