"""FeedDeck 主应用入口."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from feeddeck.api import auth
from feeddeck.config import get_settings
from feeddeck.context import AppContext

# 配置日志
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """应用生命周期管理."""
    settings = get_settings()
    if not settings.supabase_configured:
        logger.warning("Supabase 未配置，远端操作将失败")

    logger.info("正在初始化应用上下文...")
    context = AppContext(settings)
    await context.start()
    app.state.context = context

    logger.info("FeedDeck 启动完成！")
    yield

    logger.info("正在关闭...")
    await context.close()
    logger.info("FeedDeck 已关闭")


app = FastAPI(
    title="FeedDeck",
    description="RSS 阅读器客户端 - 认证、收藏夹、侧边栏与偏好同步",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(auth.router)


@app.get("/")
async def root() -> dict:
    """根路径."""
    return {
        "name": "FeedDeck",
        "version": "0.1.0",
        "description": "RSS 阅读器客户端",
    }


@app.get("/health")
async def health() -> dict:
    """健康检查."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "feeddeck.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
