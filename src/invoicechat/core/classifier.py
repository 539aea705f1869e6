"""Classify decoded tool payloads into invoice results."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from invoicechat.core.models import decode_list, decode_record
from invoicechat.core.types import Classification, Disposition

RESULT_KEY = "result"
QUERY_RESPONSE_KEY = "QueryResponse"
INVOICE_KEY = "Invoice"
DOC_NUMBER_FIELD = "DocNumber"
ID_FIELD = "Id"
TOTAL_FIELD = "TotalAmt"
TRANSPORT_METADATA_KEYS = frozenset(
    {"finishReason", "finish_reason", "usage", "isContinued", "messageId", "message_id"}
)

_MISS = Classification(Disposition.PLAIN_TEXT)


def classify(decoded: Any) -> Classification:
    """Decide whether a decoded value is an invoice list, a single invoice, or neither.

    Tool-call envelopes carry the real payload under ``result``; accounting API
    envelopes (``QueryResponse.Invoice`` or ``Invoice``) are unwrapped as well.
    """

    value = unwrap(decoded)
    if is_invoice_list(value):
        result: Classification = Classification(Disposition.LIST_RESULT, decode_list(value))
    elif is_invoice_record(value):
        result = Classification(Disposition.RECORD_RESULT, decode_record(value))
    else:
        return _MISS
    logger.trace("classifier.match disposition={}", result.disposition.value)
    return result


def unwrap(decoded: Any) -> Any:
    value = decoded
    if isinstance(value, Mapping) and RESULT_KEY in value:
        value = value[RESULT_KEY]
    if isinstance(value, Mapping):
        query = value.get(QUERY_RESPONSE_KEY)
        if isinstance(query, Mapping) and INVOICE_KEY in query:
            value = query[INVOICE_KEY]
        elif INVOICE_KEY in value:
            value = value[INVOICE_KEY]
    return value


def is_invoice_list(value: Any) -> bool:
    if not isinstance(value, list) or not value:
        return False
    first = value[0]
    return isinstance(first, Mapping) and bool(first.get(DOC_NUMBER_FIELD))


def is_invoice_record(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    if not (value.get(ID_FIELD) or value.get(DOC_NUMBER_FIELD)):
        return False
    total = value.get(TOTAL_FIELD)
    return isinstance(total, (int, float)) and not isinstance(total, bool)


def is_transport_metadata(decoded: Any) -> bool:
    """True for stream bookkeeping objects such as finish and usage records."""

    if not isinstance(decoded, Mapping) or not decoded:
        return False
    return all(key in TRANSPORT_METADATA_KEYS for key in decoded)
