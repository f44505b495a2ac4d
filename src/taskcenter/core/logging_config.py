"""structlog 配置

dev 模式：console 可读输出；json 模式：结构化 JSON 输出。
网关与 CLI 共用，Logfire 导出为可选项。
"""

import logging
import os

import structlog


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog，并接管标准库 logging 的输出格式

    Args:
        log_format: "json" 或 "dev"，缺省读取 TASKCENTER_LOG_FORMAT
        log_level: 日志级别，缺省读取 TASKCENTER_LOG_LEVEL
    """
    log_format = log_format or os.environ.get("TASKCENTER_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("TASKCENTER_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # uvicorn 访问日志与请求日志中间件重复
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logfire(app=None) -> None:
    """Logfire 可选初始化

    LOGFIRE_SEND_TO_LOGFIRE=true 时启用（需安装 observability 附加依赖并配置
    LOGFIRE_TOKEN），否则只输出本地日志。初始化失败不影响服务运行。
    """
    send_to_logfire = os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower()
    if send_to_logfire != "true":
        return
    try:
        import logfire

        logfire.configure()
        if app is not None:
            logfire.instrument_fastapi(app)
    except Exception:
        structlog.get_logger().warning(
            "logfire_init_failed",
            message="Logfire 初始化失败，降级为纯本地日志",
        )
