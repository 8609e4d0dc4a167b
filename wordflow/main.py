#!/usr/bin/env python3
"""
WordFlow 间隔复习调度服务 - FastAPI 主应用入口
Description: REST API 提供开始/恢复练习会话、提交作答、学员资料与统计
"""

import logging
import platform
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
from sqlalchemy.orm import Session

from wordflow.config.settings import settings
from wordflow.utils.logger import setup_logging
from wordflow.utils.database import init_db, check_db_connection, get_db
from wordflow.utils.helpers import format_timestamp
from wordflow.services.errors import SchedulerError
from wordflow.repositories.session_repository import SessionRepository

# 设置日志
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理
    - 启动时初始化数据库和句子目录
    """
    logger.info(f"初始化 {settings.APP_NAME} 应用...")

    try:
        init_db()
        logger.info(f"{settings.APP_NAME} 应用启动完成")
    except Exception as e:
        logger.error(f"应用启动失败: {e}")
        raise

    yield  # 应用运行期间

    logger.info(f"{settings.APP_NAME} 应用已关闭")


def create_application() -> FastAPI:
    """创建并配置FastAPI应用实例"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="英语短句间隔复习调度服务",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # 配置CORS中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 全局异常处理
    @app.exception_handler(SchedulerError)
    async def scheduler_exception_handler(request, exc: SchedulerError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.error(f"未处理的异常: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "内部服务器错误"}
        )

    return app

# 创建应用实例
app = create_application()

# 导入并包含路由
from wordflow.api.routes import users, sessions, notebooks, records

# 注册API路由
app.include_router(users.router, prefix="/api/v1/users", tags=["学员管理"])
app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["练习会话"])
app.include_router(notebooks.router, prefix="/api/v1/notebooks", tags=["句子本"])
app.include_router(records.router, prefix="/api/v1/records", tags=["学习记录"])


# 健康检查端点
@app.get("/")
async def root():
    """根端点 - 服务状态检查"""
    return {
        "status": "running",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": format_timestamp()
    }

@app.get("/health")
async def health_check():
    """健康检查端点"""
    db_status = check_db_connection()

    return {
        "status": "healthy" if db_status else "unhealthy",
        "database": "connected" if db_status else "disconnected",
        "timestamp": format_timestamp()
    }

@app.get("/api/v1/system/info")
async def system_info(db: Session = Depends(get_db)):
    """系统信息端点"""
    import psutil

    active_sessions = SessionRepository(db).count_active_sessions()

    return {
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "cpu_usage": psutil.cpu_percent(),
        "memory_usage": psutil.virtual_memory().percent,
        "active_sessions": active_sessions,
        "timezone": settings.TIMEZONE,
        "max_phrases_per_day": settings.MAX_PHRASES_PER_DAY
    }

if __name__ == "__main__":
    """开发环境直接运行"""
    uvicorn.run(
        "wordflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
        timeout_keep_alive=5,
    )
