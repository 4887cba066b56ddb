from __future__ import annotations

import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

import structlog

from journey_engine.core.domain.events.exceptions import JourneyError

C = TypeVar('C')
Q = TypeVar('Q')
R = TypeVar('R')
T = TypeVar('T')

logger = structlog.get_logger(__name__)

# (tipo do bus, nome da mensagem, segundos, código de erro ou None)
BusObserver = Callable[[str, str, float, str | None], None]


# ───────────────────────────────────────────────
# Mensagens e resultados
# ───────────────────────────────────────────────
@dataclass(frozen=True)
class CommandDTO:
    """Base dos comandos de escrita. Serviços publicam seus próprios eventos após o commit."""


@dataclass(frozen=True)
class QueryDTO(Generic[Q]):
    filtros: Q


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    page_size: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'total_pages', math.ceil(self.total / self.page_size) if self.page_size else 0)


class CommandHandler(Protocol, Generic[C]):
    def handle(self, command: C) -> Any:
        ...


class QueryHandler(Protocol, Generic[Q, R]):
    def handle(self, query: Q) -> R:
        ...


class HandlerNotRegistered(LookupError):
    pass


# ───────────────────────────────────────────────
# Buses
# ───────────────────────────────────────────────
class _MessageBus:
    """
    Roteia cada mensagem para o único handler do seu tipo.

    O nome da mensagem fica nos contextvars do structlog durante o handler,
    então logs de serviços e repositórios saem marcados com o comando/query
    que os originou. Erros de domínio são logados com o código e propagados.
    """
    kind = "message"

    def __init__(self, observer: BusObserver | None = None) -> None:
        self._handlers: dict[type, Any] = {}
        self._observer = observer

    def register(self, message_type: type, handler: Any) -> None:
        if message_type in self._handlers:
            raise ValueError(f"{self.kind} {message_type.__name__} já possui handler")
        self._handlers[message_type] = handler
        logger.debug("cqrs.handler_registered", kind=self.kind, message=message_type.__name__)

    def registered(self) -> list[str]:
        return sorted(t.__name__ for t in self._handlers)

    def dispatch(self, message: Any) -> Any:
        name = type(message).__name__
        handler = self._handlers.get(type(message))
        if handler is None:
            raise HandlerNotRegistered(f"nenhum handler para {self.kind} {name}")

        error_code: str | None = None
        start = time.perf_counter()
        with structlog.contextvars.bound_contextvars(**{self.kind: name}):
            try:
                return handler.handle(message)
            except JourneyError as exc:
                error_code = getattr(exc, "code", type(exc).__name__)
                logger.info(f"cqrs.{self.kind}_rejected", error=error_code, detail=str(exc))
                raise
            except Exception:
                error_code = "unexpected"
                logger.error(f"cqrs.{self.kind}_failed", exc_info=True)
                raise
            finally:
                elapsed = time.perf_counter() - start
                logger.info(f"cqrs.{self.kind}_handled", duration_ms=round(elapsed * 1000, 2), ok=error_code is None)
                if self._observer is not None:
                    self._observer(self.kind, name, elapsed, error_code)


class CommandBusImpl(_MessageBus):
    kind = "command"


class QueryBusImpl(_MessageBus):
    kind = "query"
