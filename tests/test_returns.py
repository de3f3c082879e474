from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.salecalc.core.error_catalog import AppError
from app.salecalc.schemas.returns import ReturnQuoteItem, ReturnRequestItem
from app.salecalc.services.returns import (
    apply_return_to_lines,
    build_sale_return,
    check_return_eligibility,
    compute_return,
    days_since_purchase,
    restocking_fee_rate,
    return_eligibility,
)
from tests.sales_helpers import SALE_DATE, days_after_sale, line, make_sale, numbers


def _quote(unit_price: str, condition: str, quantity: int = 1, line_id: str = "L1") -> ReturnQuoteItem:
    return ReturnQuoteItem(
        sale_line_id=line_id,
        unit_price=Decimal(unit_price),
        quantity=quantity,
        condition=condition,
    )


def _request(line_id: str, quantity: int = 1, condition: str = "good", serial_number=None) -> ReturnRequestItem:
    return ReturnRequestItem(
        sale_line_id=line_id,
        quantity=quantity,
        condition=condition,
        serial_number=serial_number,
    )


def _two_line_sale(document_numbers=None):
    return make_sale(
        [line("P1", "50.00"), line("P2", "30.00", quantity=2)],
        document_numbers=document_numbers,
    )


def test_good_condition_fee_is_ten_percent():
    result = compute_return(SALE_DATE, [_quote("200.00", "good")], days_after_sale(90))

    assert result.original_amount == Decimal("200.00")
    assert result.restocking_fee == Decimal("20.00")
    assert result.refund_amount == Decimal("180.00")
    assert result.breakdown[0].fee_rate == Decimal("0.10")


def test_new_items_are_free_within_grace_period():
    result = compute_return(SALE_DATE, [_quote("99.99", "new")], days_after_sale(14, hours=23))

    assert result.days_since_purchase == 14
    assert result.restocking_fee == Decimal("0.00")
    assert result.refund_amount == Decimal("99.99")


def test_new_items_pay_five_percent_after_grace_period():
    result = compute_return(SALE_DATE, [_quote("100.00", "new")], days_after_sale(15))

    assert result.days_since_purchase == 15
    assert result.restocking_fee == Decimal("5.00")
    assert result.refund_amount == Decimal("95.00")


def test_defective_items_are_refunded_in_full_at_any_age():
    result = compute_return(SALE_DATE, [_quote("120.00", "defective", quantity=2)], days_after_sale(400))

    assert result.restocking_fee == Decimal("0.00")
    assert result.refund_amount == Decimal("240.00")


def test_mixed_conditions_sum_per_line():
    result = compute_return(
        SALE_DATE,
        [
            _quote("100.00", "damaged", quantity=2, line_id="L1"),
            _quote("10.00", "good", line_id="L2"),
            _quote("33.33", "new", line_id="L3"),
        ],
        days_after_sale(2),
    )

    assert [item.restocking_fee for item in result.breakdown] == [
        Decimal("60.00"),
        Decimal("1.00"),
        Decimal("0.00"),
    ]
    assert result.original_amount == Decimal("243.33")
    assert result.restocking_fee == Decimal("61.00")
    assert result.refund_amount == Decimal("182.33")


@pytest.mark.parametrize("condition", ["new", "good", "damaged", "defective"])
@pytest.mark.parametrize("days", [0, 14, 15, 365])
def test_refund_never_exceeds_original_amount(condition, days):
    result = compute_return(SALE_DATE, [_quote("57.77", condition, quantity=3)], days_after_sale(days))

    assert Decimal("0.00") <= result.restocking_fee <= result.original_amount
    assert result.refund_amount == result.original_amount - result.restocking_fee
    assert result.refund_amount >= 0


def test_empty_quote_returns_zero_totals():
    result = compute_return(SALE_DATE, [], days_after_sale(1))

    assert result.original_amount == Decimal("0.00")
    assert result.refund_amount == Decimal("0.00")
    assert result.breakdown == []


def test_quote_rejects_bad_lines():
    with pytest.raises(AppError) as exc:
        compute_return(SALE_DATE, [_quote("10.00", "good", quantity=0), _quote("-1.00", "good")], days_after_sale(1))

    assert exc.value.error.code == "VALIDATION_ERROR"
    assert len(exc.value.messages) == 2


def test_days_since_purchase_treats_naive_dates_as_utc():
    naive = datetime(2024, 3, 1, 10, 0)

    assert days_since_purchase(naive, datetime(2024, 3, 11, 9, 59, tzinfo=timezone.utc)) == 9
    assert days_since_purchase(naive, datetime(2024, 3, 11, 10, 0, tzinfo=timezone.utc)) == 10


def test_restocking_fee_rate_table():
    assert restocking_fee_rate("new", 14) == Decimal("0")
    assert restocking_fee_rate("new", 15) == Decimal("0.05")
    assert restocking_fee_rate("good", 0) == Decimal("0.10")
    assert restocking_fee_rate("damaged", 0) == Decimal("0.30")
    assert restocking_fee_rate("defective", 1000) == Decimal("0")


def test_partial_return_marks_line_partially_returned():
    sale = _two_line_sale()
    second_line = sale.line_items[1].id

    record = build_sale_return(sale, [_request(second_line)], numbers(), now=days_after_sale(3))

    assert record.return_number == "R-000001"
    assert record.refund_amount == Decimal("27.00")
    assert record.sale_status == "completed"
    states = {state.sale_line_id: state for state in record.line_states}
    assert states[second_line].quantity_returned == 1
    assert states[second_line].return_status == "partially_returned"
    assert states[sale.line_items[0].id].return_status == "not_returned"


def test_returning_everything_refunds_the_sale():
    sale = _two_line_sale()
    requests = [
        _request(sale.line_items[0].id, condition="defective"),
        _request(sale.line_items[1].id, quantity=2, condition="new"),
    ]

    record = build_sale_return(sale, requests, numbers(), refund_method="card", now=days_after_sale(1))

    assert record.sale_status == "refunded"
    assert record.refund_method == "card"
    assert record.refund_amount == Decimal("110.00")
    assert all(state.return_status == "fully_returned" for state in record.line_states)


def test_requests_for_the_same_line_are_aggregated():
    sale = _two_line_sale()
    line_id = sale.line_items[1].id

    with pytest.raises(AppError) as exc:
        check_return_eligibility(sale, [_request(line_id, quantity=2), _request(line_id)])

    assert exc.value.error.code == "RETURN_NOT_ELIGIBLE"
    assert exc.value.messages == [f"Cannot return 3 units of line {line_id} - only 2 remaining"]


def test_cancelled_sale_cannot_be_returned():
    sale = _two_line_sale().model_copy(update={"status": "cancelled"})

    with pytest.raises(AppError) as exc:
        check_return_eligibility(sale, [_request(sale.line_items[0].id)])

    assert exc.value.error.code == "RETURN_NOT_ELIGIBLE"
    assert "Sale is already cancelled" in exc.value.messages


def test_unknown_line_cannot_be_returned():
    sale = _two_line_sale()

    with pytest.raises(AppError) as exc:
        check_return_eligibility(sale, [_request("VL-999999")])

    assert exc.value.messages == ["Sale line VL-999999 not found in sale"]


def test_fully_returned_line_cannot_be_returned_again():
    sale = _two_line_sale()
    returned = sale.line_items[0].model_copy(update={"quantity_returned": 1, "return_status": "fully_returned"})
    sale = sale.model_copy(update={"line_items": [returned, sale.line_items[1]]})

    with pytest.raises(AppError) as exc:
        check_return_eligibility(sale, [_request(returned.id)])

    assert exc.value.messages == [f"Sale line {returned.id} has already been fully returned"]


def test_serial_number_must_match_the_sold_unit():
    sale = make_sale([line("PHONE", "499.00", serial_number="SN-1")])
    line_id = sale.line_items[0].id

    with pytest.raises(AppError) as exc:
        check_return_eligibility(sale, [_request(line_id, serial_number="SN-2")])
    assert exc.value.messages == [f"Serial number mismatch for line {line_id}"]

    check_return_eligibility(sale, [_request(line_id, serial_number="SN-1")])


def test_serialized_line_requires_the_serial_number():
    sale = make_sale([line("PHONE", "499.00", serial_number="SN-1"), line("CASE", "19.00")])
    phone, case = sale.line_items

    with pytest.raises(AppError) as exc:
        check_return_eligibility(sale, [_request(phone.id)])
    assert exc.value.error.code == "RETURN_NOT_ELIGIBLE"
    assert exc.value.messages == [f"Serial number mismatch for line {phone.id}"]

    check_return_eligibility(sale, [_request(case.id)])


def test_return_request_needs_items_and_positive_quantities():
    sale = _two_line_sale()

    with pytest.raises(AppError) as exc:
        check_return_eligibility(sale, [])
    assert exc.value.error.code == "VALIDATION_ERROR"

    with pytest.raises(AppError) as exc:
        check_return_eligibility(sale, [_request(sale.line_items[0].id, quantity=0)])
    assert exc.value.error.code == "VALIDATION_ERROR"


def test_return_eligibility_lists_returnable_lines():
    sale = _two_line_sale()

    result = return_eligibility(sale)

    assert result.eligible is True
    assert [state.sale_line_id for state in result.returnable_lines] == [item.id for item in sale.line_items]

    refunded = return_eligibility(sale.model_copy(update={"status": "refunded"}))
    assert refunded.eligible is False
    assert refunded.reason == "Sale is already refunded"


def test_apply_return_to_lines_keeps_previous_returns():
    sale = _two_line_sale()
    partial = sale.line_items[1].model_copy(update={"quantity_returned": 1, "return_status": "partially_returned"})
    sale = sale.model_copy(update={"line_items": [sale.line_items[0], partial]})

    states, status = apply_return_to_lines(sale, [_request(partial.id)])

    assert states[1].quantity_returned == 2
    assert states[1].return_status == "fully_returned"
    assert status == "completed"


def test_quote_endpoint(client):
    response = client.post(
        "/salecalc/returns/quote",
        json={
            "sale_date": "2024-03-01T10:00:00Z",
            "as_of": "2024-03-20T10:00:00Z",
            "items": [{"sale_line_id": "L1", "unit_price": "200.00", "quantity": 1, "condition": "good"}],
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["days_since_purchase"] == 19
    assert payload["restocking_fee"] == "20.00"
    assert payload["refund_amount"] == "180.00"
    assert payload["breakdown"][0]["fee_rate"] == "0.1"


def test_create_return_endpoint(client):
    sale = _two_line_sale()

    response = client.post(
        "/salecalc/returns",
        json={
            "sale": sale.model_dump(mode="json"),
            "items": [{"sale_line_id": sale.line_items[0].id, "quantity": 1, "condition": "damaged"}],
            "reason": "damaged_on_arrival",
            "as_of": "2024-03-05T10:00:00Z",
        },
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["return_number"] == "R-000001"
    assert payload["restocking_fee"] == "15.00"
    assert payload["refund_amount"] == "35.00"


def test_create_return_endpoint_rejects_ineligible_sale(client):
    sale = _two_line_sale().model_copy(update={"status": "refunded"})

    response = client.post(
        "/salecalc/returns",
        json={
            "sale": sale.model_dump(mode="json"),
            "items": [{"sale_line_id": sale.line_items[0].id, "quantity": 1, "condition": "good"}],
        },
    )

    assert response.status_code == 409
    payload = response.json()
    assert payload["code"] == "RETURN_NOT_ELIGIBLE"
    assert payload["details"]["messages"] == ["Sale is already refunded"]


def test_eligibility_endpoint(client):
    sale = _two_line_sale()

    response = client.post("/salecalc/returns/eligibility", json={"sale": sale.model_dump(mode="json")})

    assert response.status_code == 200
    assert response.json()["eligible"] is True
