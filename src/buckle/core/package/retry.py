"""Política de retry por pacote."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

DEFAULT_RETRY_LIMIT = 0
DEFAULT_RETRY_DELAY_MS = 5000


@dataclass(frozen=True)
class RetryPolicy:
    """
    Quantas vezes a aplicação de um pacote é repetida após uma falha.

    - limit: número de novas tentativas (0 = nenhuma); total de tentativas = limit + 1
    - delay_ms: espera bloqueante entre tentativas, em milissegundos
    """

    limit: int = DEFAULT_RETRY_LIMIT
    delay_ms: int = DEFAULT_RETRY_DELAY_MS

    @property
    def attempts(self) -> int:
        return self.limit + 1

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0

    @classmethod
    def from_manifest(cls, data: Optional[Mapping[str, Any]], default: "RetryPolicy") -> "RetryPolicy":
        """Constroi a política a partir do bloco `retry:` do manifest.

        Raises:
            ValueError: se o bloco não for um mapa ou se `limit`/`delay`
                não forem inteiros não negativos.
        """
        if data is None:
            return default
        if not isinstance(data, Mapping):
            raise ValueError("'retry' must be a mapping with 'limit' and 'delay'")

        limit = data.get("limit", default.limit)
        delay = data.get("delay", default.delay_ms)
        for name, value in (("retry.limit", limit), ("retry.delay", delay)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"'{name}' must be a non-negative integer (got {value!r})")

        return cls(limit=limit, delay_ms=delay)
