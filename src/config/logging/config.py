"""Configuração centralizada de logging.

Funções para configurar logging estruturado JSON com:
- Campos obrigatórios (correlation_id, service, level, logger, message)
- Mascaramento de campos sensíveis
- Níveis configuráveis por ambiente

Uso:
    from config.logging import configure_logging, get_logger

    # Na inicialização do serviço (app/bootstrap/)
    configure_logging(level="INFO", service_name="conecta_inbox")

    # Em qualquer módulo
    logger = get_logger(__name__)
    logger.info("ingestion_completed", extra={"latency_ms": 42})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import CorrelationIdFilter, SensitiveFieldFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

# Níveis de log válidos
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Nome padrão do serviço
DEFAULT_SERVICE_NAME = "conecta_inbox"


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
) -> None:
    """Configura logging JSON estruturado para o serviço.

    Deve ser chamada uma vez na inicialização do serviço (app/bootstrap/).

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função opcional que retorna o correlation_id
            do contexto atual (ex: de ContextVar).

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(CorrelationIdFilter(service_name, correlation_id_getter))
    handler.addFilter(SensitiveFieldFilter())

    root = logging.getLogger()
    root.setLevel(level_upper)
    # Substituir handlers existentes para evitar duplicação
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger para o módulo especificado."""
    return logging.getLogger(name)


def log_stage_failure(
    logger: logging.Logger,
    stage: str,
    reason: str,
    *,
    error_type: str | None = None,
    elapsed_ms: float | None = None,
    fatal: bool = False,
) -> None:
    """Log observável de falha de estágio do pipeline (sem PII).

    Falhas não fatais são registradas como WARNING; fatais como ERROR.

    Args:
        logger: Logger instance.
        stage: Estágio do pipeline (ex: "identity_resolution").
        reason: Código curto da falha (ex: "timeout").
        error_type: Nome da classe da exceção, quando houver.
        elapsed_ms: Tempo decorrido no estágio em ms.
        fatal: Se a falha encerra o processamento da mensagem.

    Exemplo:
        log_stage_failure(logger, "media_resolution", "timeout", elapsed_ms=5012.3)
    """
    extra: dict[str, object] = {
        "stage": stage,
        "reason": reason,
        "fatal": fatal,
    }
    if error_type:
        extra["error_type"] = error_type
    if elapsed_ms is not None:
        extra["elapsed_ms"] = round(elapsed_ms, 2)

    logger.log(
        logging.ERROR if fatal else logging.WARNING,
        "ingestion_stage_failed",
        extra=extra,
    )
