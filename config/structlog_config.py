import logging
import os
import sys

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder

# Bibliotecas muito verbosas em DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "celery.utils.functional", "django.db.backends")


def configure_logging(
    level: str = "DEBUG",
    json_logs: bool = bool(os.getenv("JSON_LOGS", "")),
    service: str = os.getenv("SERVICE_NAME", "legalflow-jornadas"),
) -> None:
    """
    Configura structlog + logging:
     - `json_logs` ativa JSONRenderer (produção); senão ConsoleRenderer colorido.
     - `request_id` (middleware) e demais contextvars entram em todos os eventos.
    Deve ser chamado ANTES de qualquer import que crie loggers.
    """

    def add_service(_, __, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    pre_chain = [
        structlog.contextvars.merge_contextvars,     # request_id, method, path
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service,
    ]

    final_processor = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *pre_chain,
            CallsiteParameterAdder(
                parameters=[
                    CallsiteParameter.MODULE,
                    CallsiteParameter.FUNC_NAME,
                    CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level)
        ),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=final_processor,
        foreign_pre_chain=pre_chain,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.getLevelName(level), logging.WARNING))

    logging.captureWarnings(True)
