"""
===============================================================================
TARJETA CRC — application/sequence_allocator.py
===============================================================================

Módulo:
    Allocator de códigos secuenciales (facturas, productos, lotes, ventas)

Responsabilidades:
    - Calcular el siguiente código: leer el mayor existente, parsear, +1,
      formatear con ancho fijo.
    - Degradar a prefijo + epoch ms si la lectura falla (no monótono).
    - Modo "racy": leer e insertar sin coordinación. Dos llamadas
      concurrentes pueden calcular el mismo código; el UNIQUE de la tabla
      rechaza la segunda inserción con ConflictError.
    - Modo "strict": mismo paso reintentado con tenacity ante ConflictError,
      backoff exponencial con jitter, y SequenceExhaustedError al agotarse.

Colaboradores:
    - domain.sequences.SequenceFormat: formato puro.
    - domain.repositories.SequenceStore: último código por prefijo.
    - tenacity: política de reintentos (misma receta que el resto del stack).

Notas:
    - `clock` es inyectable: fija el año del prefijo y el epoch del fallback.
    - Pasado el ancho fijo (p.ej. 9999 para facturas) el orden lexicográfico
      deja de coincidir con el numérico: se corta con SequenceAllocationError.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ..crosscutting.config import SEQUENCE_MODES
from ..crosscutting.exceptions import (
    ConflictError,
    SequenceAllocationError,
    SequenceExhaustedError,
)
from ..crosscutting.logger import logger
from ..domain.repositories import SequenceStore
from ..domain.sequences import SequenceFormat

T = TypeVar("T")

MODE_RACY = "racy"
MODE_STRICT = "strict"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    wait_time = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        "Código en conflicto; reintentando asignación",
        extra={
            "attempt": retry_state.attempt_number,
            "wait_seconds": round(float(wait_time), 3),
            "error": str(exc) if exc else None,
        },
    )


class SequenceAllocator:
    """R: Asigna códigos secuenciales sobre un SequenceStore."""

    def __init__(
        self,
        store: SequenceStore,
        *,
        mode: str = MODE_RACY,
        max_attempts: int = 5,
        backoff_initial_seconds: float = 0.05,
        backoff_max_seconds: float = 1.0,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        if mode not in SEQUENCE_MODES:
            raise ValueError(f"mode must be one of {sorted(SEQUENCE_MODES)}")
        if max_attempts <= 0:
            raise ValueError("max_attempts must be > 0")

        self._store = store
        self.mode = mode
        self._max_attempts = max_attempts
        self._backoff_initial = backoff_initial_seconds
        self._backoff_max = backoff_max_seconds
        self._clock = clock
        self._sleep = sleep

    def current_year(self) -> int:
        return self._clock().year

    def next_code(self, fmt: SequenceFormat) -> str:
        """Siguiente código para `fmt`, o el código degradado si la lectura falla."""
        try:
            last = self._store.last_code(fmt.kind, fmt.search_prefix, fmt.code_length)
        except Exception as exc:
            code = fmt.fallback(int(self._clock().timestamp() * 1000))
            logger.warning(
                "Lectura de secuencia fallida; usando código degradado",
                extra={"kind": fmt.kind.value, "prefix": fmt.prefix, "code": code, "error": str(exc)},
            )
            return code

        number = fmt.parse(last) + 1
        if number > fmt.max_number:
            raise SequenceAllocationError(
                f"Secuencia agotada para el prefijo {fmt.prefix}."
            )
        return fmt.format(number)

    def allocate(self, fmt: SequenceFormat, insert: Callable[[str], T]) -> tuple[str, T]:
        """Asigna un código y lo persiste con `insert(code)`.

        Returns:
            (código asignado, resultado de insert)
        """
        if self.mode == MODE_RACY:
            return self._attempt(fmt, insert)

        retrying_kwargs = {
            "stop": stop_after_attempt(self._max_attempts),
            "wait": wait_exponential_jitter(
                initial=self._backoff_initial, max=self._backoff_max
            ),
            "retry": retry_if_exception_type(ConflictError),
            "before_sleep": _log_retry,
        }
        if self._sleep is not None:
            retrying_kwargs["sleep"] = self._sleep

        try:
            for attempt in Retrying(**retrying_kwargs):
                with attempt:
                    result = self._attempt(fmt, insert)
        except RetryError as exc:
            logger.error(
                "Reintentos de secuencia agotados",
                extra={"kind": fmt.kind.value, "prefix": fmt.prefix, "attempts": self._max_attempts},
            )
            raise SequenceExhaustedError(
                "No se pudo asignar un código único; intente nuevamente.",
                original_error=exc.last_attempt.exception(),
            ) from exc
        return result

    def _attempt(self, fmt: SequenceFormat, insert: Callable[[str], T]) -> tuple[str, T]:
        code = self.next_code(fmt)
        return code, insert(code)
