"""
whoop-insight: Whoop 健康数据洞察（MCP 服务器）
"""
__version__ = "1.0.0"
