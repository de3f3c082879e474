from __future__ import annotations

import threading


class DocumentSequence:
    """Monotonic document numbers (sale, return, exchange, line ids).

    Callers own the instance and pass it to the operations that need one;
    there is no module-level counter.
    """

    def __init__(self, prefix: str, *, start: int = 1, width: int = 6) -> None:
        if start < 1:
            raise ValueError("start must be >= 1")
        self.prefix = prefix
        self.width = width
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            value = self._next
            self._next += 1
        return f"{self.prefix}-{value:0{self.width}d}"

    def peek(self) -> str:
        return f"{self.prefix}-{self._next:0{self.width}d}"


class DocumentNumbers:
    def __init__(
        self,
        *,
        sale: DocumentSequence,
        sale_return: DocumentSequence,
        exchange: DocumentSequence,
        line: DocumentSequence,
    ) -> None:
        self.sale = sale
        self.sale_return = sale_return
        self.exchange = exchange
        self.line = line

    @classmethod
    def from_prefixes(cls, *, sale: str, sale_return: str, exchange: str, width: int = 6) -> "DocumentNumbers":
        return cls(
            sale=DocumentSequence(sale, width=width),
            sale_return=DocumentSequence(sale_return, width=width),
            exchange=DocumentSequence(exchange, width=width),
            line=DocumentSequence(f"{sale}L", width=width),
        )
