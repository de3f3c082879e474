from fastapi import Request

from app.salecalc.core.config import settings
from app.salecalc.services.numbering import DocumentNumbers


def build_document_numbers() -> DocumentNumbers:
    return DocumentNumbers.from_prefixes(
        sale=settings.DOCUMENT_PREFIX_SALE,
        sale_return=settings.DOCUMENT_PREFIX_RETURN,
        exchange=settings.DOCUMENT_PREFIX_EXCHANGE,
        width=settings.DOCUMENT_NUMBER_WIDTH,
    )


def get_document_numbers(request: Request) -> DocumentNumbers:
    numbers = getattr(request.app.state, "document_numbers", None)
    if numbers is None:
        numbers = build_document_numbers()
        request.app.state.document_numbers = numbers
    return numbers
