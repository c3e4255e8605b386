"""
whoop-insight 入口（MCP stdio 服务器）
"""
import logging
import sys

from whoop_insight.config import settings

# 配置日志（stdout 留给 JSON-RPC，日志只写 stderr）
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def main():
    from whoop_insight.mcp import get_mcp_server

    server = get_mcp_server()
    logger.info(f"🔌 {settings.APP_NAME} MCP Server 启动 (stdio)")
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
