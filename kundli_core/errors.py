"""Error taxonomy shared by the services and the HTTP layer.

Every domain failure carries a stable machine-readable ``code`` and the HTTP
status the API should answer with. The FastAPI exception handler in
``main.py`` renders these into the standard error envelope.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional


class KundliError(Exception):
    code: str = "KUNDLI_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or []


class ValidationError(KundliError):
    """Bad birth data or an unknown lookup key supplied by the caller."""

    code = "VALIDATION_ERROR"
    status_code = 400


class CalculationError(KundliError):
    """A computation stage failed (oracle error, unknown table entry)."""

    code = "CALCULATION_ERROR"
    status_code = 500


@contextmanager
def calculation_stage(stage: str) -> Iterator[None]:
    """Re-raise failures inside the block as ``CalculationError("<stage> failed: ...")``.

    ``ValidationError`` passes through untouched so callers still get a 400.
    """
    try:
        yield
    except ValidationError:
        raise
    except Exception as exc:
        message = exc.message if isinstance(exc, KundliError) else str(exc)
        raise CalculationError(f"{stage} failed: {message}") from exc
