"""Configuração de logging estruturado.

Re-exporta funções e classes para configuração de logging JSON.

Uso:
    from config.logging import configure_logging, get_logger

    # Na inicialização (bootstrap)
    configure_logging(level="INFO", service_name="conecta_inbox")

    # Em qualquer módulo
    logger = get_logger(__name__)
    logger.info("ingestion_completed", extra={"status": "success"})

Campos obrigatórios em todo log:
- correlation_id
- service
- level
- logger
- message
- timestamp
"""

from config.logging.config import configure_logging, get_logger, log_stage_failure
from config.logging.filters import CorrelationIdFilter, SensitiveFieldFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    # Filters
    "CorrelationIdFilter",
    "SensitiveFieldFilter",
    # Configuração principal
    "configure_logging",
    # Formatters
    "create_json_formatter",
    "get_logger",
    "log_stage_failure",
]
