from __future__ import annotations

import json

import pytest

RECORD = {
    "Id": "130",
    "DocNumber": "1037",
    "TxnDate": "2024-06-01",
    "DueDate": "2024-07-01",
    "CustomerRef": {"name": "Sonnenschein Family Store", "value": "24"},
    "TotalAmt": 362.07,
    "Balance": 362.07,
    "Line": [
        {
            "Description": "Rock Fountain",
            "Amount": 275,
            "DetailType": "SalesItemLineDetail",
            "SalesItemLineDetail": {"ItemRef": {"name": "Rock Fountain"}, "Qty": 1, "UnitPrice": 275},
        }
    ],
}


def data_stream(*lines: str) -> str:
    return "".join(f"{line}\n" for line in lines)


@pytest.fixture
def record() -> dict[str, object]:
    return json.loads(json.dumps(RECORD))


@pytest.fixture
def record_stream() -> str:
    tool_call = {"toolCallId": "call_1", "toolName": "getInvoiceByIdFromApi", "args": {"invoiceId": "130"}}
    tool_result = {"toolCallId": "call_1", "result": RECORD}
    return data_stream(
        f"9:{json.dumps(tool_call)}",
        f"a:{json.dumps(tool_result)}",
        'e:{"finishReason":"tool-calls","usage":{"promptTokens":120,"completionTokens":20},"isContinued":false}',
        '0:"Here is invoice 1037."',
        'd:{"finishReason":"stop","usage":{"promptTokens":200,"completionTokens":10}}',
    )


@pytest.fixture
def list_stream() -> str:
    invoices = [{"DocNumber": "1001", "TotalAmt": 10}, {"DocNumber": "1002", "TotalAmt": 20}]
    return data_stream(
        '0:"Let me fetch your top invoices."',
        f'a:{json.dumps({"toolCallId": "call_2", "result": invoices})}',
        'd:{"finishReason":"stop"}',
    )


@pytest.fixture
def miss_stream() -> str:
    return data_stream(
        '9:{"toolCallId":"call_3","toolName":"getInvoiceByIdFromApi","args":{"invoiceId":"4521"}}',
        'a:{"toolCallId":"call_3","result":{"error":"Failed to fetch invoice: Not Found","status":404}}',
        'd:{"finishReason":"stop","usage":{"promptTokens":80,"completionTokens":0}}',
    )
