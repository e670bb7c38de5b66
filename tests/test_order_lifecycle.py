from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import text

from crumbsy.extensions import db
from crumbsy.models.order import (
    POSTED,
    BAKER_ASSIGNED,
    IN_PROGRESS,
    OUT_FOR_DELIVERY,
    DELIVERED,
    CANCELLED,
)
from crumbsy.services.order_service import (
    get_baker_quote,
    has_active_baker_quote,
    active_quote_count,
    WITHDRAWAL_MESSAGE,
)
from crumbsy.utils.dates import as_utc
from crumbsy.utils.exceptions import OrderNotFound, InvalidStatus, ServiceError

from conftest import DESIGN


def test_create_order_starts_posted(posted_order, users, clock):
    assert posted_order.status == POSTED
    assert posted_order.buyer_id == users["buyer"].id
    assert posted_order.baker_id is None
    assert posted_order.messages == []
    assert posted_order.quotes == []
    assert as_utc(posted_order.created_at) == clock.now
    assert as_utc(posted_order.updated_at) == clock.now


def test_create_order_copies_design(service, users, clock):
    design = dict(DESIGN, toppings=["sprinkles"])
    order = service.create_order(users["buyer"].id, design, "10001", clock.now + timedelta(days=5))

    design["toppings"].append("candles")
    design["name"] = "Changed"

    order = service.get_order(order.id)
    assert order.cake_design["toppings"] == ["sprinkles"]
    assert order.cake_design["name"] == "Birthday"


def test_unknown_order_raises_not_found(service, users):
    with pytest.raises(OrderNotFound):
        service.get_order("ORD-missing")
    with pytest.raises(OrderNotFound):
        service.cancel_order("ORD-missing", users["buyer"].id)


def test_send_quote_appends_quote_message(service, posted_order, users, clock):
    clock.advance(minutes=5)
    quote = service.send_quote(posted_order.id, users["baker_a"].id, 50, "less sugar", "I can do it")

    order = service.get_order(posted_order.id)
    assert quote.is_active
    assert quote.price == Decimal("50")
    assert len(order.messages) == 1
    msg = order.messages[0]
    assert msg.is_quote
    assert msg.sender_id == users["baker_a"].id
    assert msg.sender_type == "baker"
    assert msg.price == Decimal("50")
    assert as_utc(order.updated_at) == clock.now


def test_resubmitted_quote_replaces_previous(service, posted_order, users):
    baker = users["baker_a"].id
    first = service.send_quote(posted_order.id, baker, 50, "", "first offer")
    first_id = first.id
    service.send_quote(posted_order.id, baker, 45, "no nuts", "better offer")

    order = service.get_order(posted_order.id)
    assert len(order.quotes) == 1
    assert order.quotes[0].id == first_id
    assert has_active_baker_quote(order, baker)
    quote = get_baker_quote(order, baker)
    assert quote.price == Decimal("45")
    assert quote.message == "better offer"
    assert quote.modification_requests == "no nuts"
    # both submissions show up in the chat
    assert [m.message for m in order.messages] == ["first offer", "better offer"]


def test_revoke_quote_is_idempotent(service, posted_order, users):
    baker = users["baker_a"].id
    service.send_quote(posted_order.id, baker, 50, "", "offer")

    assert service.revoke_quote(posted_order.id, baker) is True
    assert service.revoke_quote(posted_order.id, baker) is False

    order = service.get_order(posted_order.id)
    assert len(order.quotes) == 1
    assert order.quotes[0].is_active is False
    assert get_baker_quote(order, baker) is None
    withdrawals = [m for m in order.messages if m.message == WITHDRAWAL_MESSAGE]
    assert len(withdrawals) == 1


def test_revoke_without_quote_changes_nothing(service, posted_order, users):
    assert service.revoke_quote(posted_order.id, users["baker_a"].id) is False
    assert service.get_order(posted_order.id).messages == []


def test_resubmit_after_revoke_reactivates(service, posted_order, users):
    baker = users["baker_a"].id
    service.send_quote(posted_order.id, baker, 50, "", "offer")
    service.revoke_quote(posted_order.id, baker)
    service.send_quote(posted_order.id, baker, 55, "", "back again")

    order = service.get_order(posted_order.id)
    assert get_baker_quote(order, baker).price == Decimal("55")
    assert active_quote_count(order) == 1


def test_quote_count_only_counts_active(service, posted_order, users):
    service.send_quote(posted_order.id, users["baker_a"].id, 50, "", "a")
    service.send_quote(posted_order.id, users["baker_b"].id, 60, "", "b")
    service.revoke_quote(posted_order.id, users["baker_b"].id)

    order = service.get_order(posted_order.id)
    assert len(order.quotes) == 2
    assert active_quote_count(order) == 1


def test_assign_baker(service, posted_order, users, clock):
    service.send_quote(posted_order.id, users["baker_a"].id, 50, "no nuts", "offer")
    clock.advance(hours=1)
    order = service.assign_baker(posted_order.id, users["baker_a"].id)

    assert order.status == BAKER_ASSIGNED
    assert order.baker_id == users["baker_a"].id
    assert as_utc(order.assigned_at) == clock.now
    assert order.price == Decimal("50")
    assert order.quoted_modifications == "no nuts"


def test_assign_baker_has_no_status_guard(service, posted_order, users, clock):
    service.update_order_status(posted_order.id, DELIVERED)
    clock.advance(hours=2)
    order = service.assign_baker(posted_order.id, users["baker_b"].id)

    assert order.status == BAKER_ASSIGNED
    assert order.baker_id == users["baker_b"].id
    assert as_utc(order.assigned_at) == clock.now


def test_reassigning_refreshes_assigned_at(service, posted_order, users, clock):
    service.assign_baker(posted_order.id, users["baker_a"].id)
    clock.advance(hours=3)
    order = service.assign_baker(posted_order.id, users["baker_b"].id)
    assert order.baker_id == users["baker_b"].id
    assert as_utc(order.assigned_at) == clock.now


def test_reassigning_to_baker_without_quote_clears_quoted_terms(service, posted_order, users):
    service.send_quote(posted_order.id, users["baker_a"].id, 50, "no nuts", "offer")
    service.assign_baker(posted_order.id, users["baker_a"].id)
    order = service.assign_baker(posted_order.id, users["baker_b"].id)

    assert order.baker_id == users["baker_b"].id
    assert order.price is None
    assert order.quoted_modifications is None


def test_assignment_and_decline_keep_buyer_modifications(service, posted_order, users, clock):
    service.update_order(posted_order.id, modification_requests="buyer wants blue")
    service.send_quote(posted_order.id, users["baker_a"].id, 50, "no nuts", "offer")

    order = service.assign_baker(posted_order.id, users["baker_a"].id)
    assert order.modification_requests == "buyer wants blue"
    assert order.quoted_modifications == "no nuts"

    clock.advance(hours=1)
    assert service.decline_order(posted_order.id, users["baker_a"].id) is True
    order = service.get_order(posted_order.id)
    assert order.price is None
    assert order.quoted_modifications is None
    assert order.modification_requests == "buyer wants blue"


def test_cancel_posted_order(service, posted_order, users):
    assert service.cancel_order(posted_order.id, users["buyer"].id) is True
    assert service.get_order(posted_order.id).status == CANCELLED


def test_other_buyer_cannot_cancel(service, posted_order, users):
    assert service.cancel_order(posted_order.id, users["other_buyer"].id) is False
    assert service.get_order(posted_order.id).status == POSTED


def test_cancel_rechecks_row_under_lock(service, posted_order, users):
    order = service.get_order(posted_order.id)
    assert order.status == POSTED

    # the row moves on behind the copy the session already holds
    db.session.execute(
        text("UPDATE orders SET status = :status WHERE id = :id"),
        {"status": IN_PROGRESS, "id": order.id},
    )

    assert service.cancel_order(order.id, users["buyer"].id) is False
    assert service.get_order(order.id).status != CANCELLED


def test_cancel_outside_window_is_noop(service, posted_order, users, clock):
    service.assign_baker(posted_order.id, users["baker_a"].id)
    before = as_utc(service.get_order(posted_order.id).updated_at)
    clock.advance(hours=25)

    assert service.cancel_order(posted_order.id, users["buyer"].id) is False
    order = service.get_order(posted_order.id)
    assert order.status == BAKER_ASSIGNED
    assert as_utc(order.updated_at) == before


def test_cancelled_order_cannot_be_cancelled_again(service, posted_order, users):
    service.cancel_order(posted_order.id, users["buyer"].id)
    assert service.cancel_order(posted_order.id, users["buyer"].id) is False


def test_decline_reopens_order(service, posted_order, users, clock):
    service.send_quote(posted_order.id, users["baker_a"].id, 50, "", "offer")
    service.assign_baker(posted_order.id, users["baker_a"].id)
    clock.advance(hours=1)

    assert service.decline_order(posted_order.id, users["baker_a"].id) is True
    order = service.get_order(posted_order.id)
    assert order.status == POSTED
    assert order.baker_id is None
    assert order.assigned_at is None
    assert order.price is None
    # quote history is kept
    assert len(order.quotes) == 1


def test_decline_by_other_baker_is_noop(service, posted_order, users):
    service.assign_baker(posted_order.id, users["baker_a"].id)
    assert service.decline_order(posted_order.id, users["baker_b"].id) is False
    assert service.get_order(posted_order.id).baker_id == users["baker_a"].id


def test_update_order_status_is_unconditional(service, posted_order):
    order = service.update_order_status(posted_order.id, DELIVERED)
    assert order.status == DELIVERED
    order = service.update_order_status(posted_order.id, IN_PROGRESS)
    assert order.status == IN_PROGRESS


def test_update_order_status_rejects_unknown_status(service, posted_order):
    with pytest.raises(InvalidStatus):
        service.update_order_status(posted_order.id, "shipped")


def test_out_for_delivery_generates_code(service, posted_order):
    order = service.update_order_status(posted_order.id, OUT_FOR_DELIVERY)
    assert order.otp_code is not None
    assert len(order.otp_code) == 6
    assert order.otp_code.isdigit()


def test_out_for_delivery_keeps_supplied_code(service, posted_order):
    order = service.update_order_status(posted_order.id, OUT_FOR_DELIVERY, otp_code="123456")
    assert order.otp_code == "123456"


def test_confirm_delivery(service, posted_order, users):
    baker = users["baker_a"].id
    service.assign_baker(posted_order.id, baker)
    service.update_order_status(posted_order.id, IN_PROGRESS)
    service.update_order_status(posted_order.id, OUT_FOR_DELIVERY, otp_code="654321")

    assert service.confirm_delivery(posted_order.id, baker, "000000") is False
    assert service.get_order(posted_order.id).status == OUT_FOR_DELIVERY

    assert service.confirm_delivery(posted_order.id, users["baker_b"].id, "654321") is False
    assert service.confirm_delivery(posted_order.id, baker, "654321") is True
    assert service.get_order(posted_order.id).status == DELIVERED


def test_confirm_delivery_cannot_skip_fulfilment(service, posted_order, users):
    assert service.confirm_delivery(posted_order.id, users["baker_a"].id, "") is False
    assert service.get_order(posted_order.id).status == POSTED


def test_add_message_appends_in_order(service, posted_order, users, clock):
    service.add_message(posted_order.id, users["buyer"].id, "buyer", "Hi")
    clock.advance(minutes=1)
    service.add_message(posted_order.id, users["baker_a"].id, "baker", "Hello", image="http://img/1.png")

    order = service.get_order(posted_order.id)
    assert [m.message for m in order.messages] == ["Hi", "Hello"]
    assert order.messages[1].image == "http://img/1.png"
    assert as_utc(order.updated_at) == clock.now


def test_update_order_only_touches_editable_fields(service, posted_order, clock):
    new_date = clock.now + timedelta(days=20)
    order = service.update_order(posted_order.id, delivery_zip_code="94102", expected_delivery_date=new_date)
    assert order.delivery_zip_code == "94102"
    assert as_utc(order.expected_delivery_date) == new_date

    with pytest.raises(ServiceError):
        service.update_order(posted_order.id, status=DELIVERED)
    assert service.get_order(posted_order.id).status == POSTED


def test_order_queries(service, posted_order, users, clock):
    clock.advance(minutes=1)
    second = service.create_order(users["buyer"].id, DESIGN, "10002", clock.now + timedelta(days=9))
    clock.advance(minutes=1)
    service.create_order(users["other_buyer"].id, DESIGN, "10003", clock.now + timedelta(days=9))
    service.send_quote(second.id, users["baker_a"].id, 40, "", "quote")
    service.assign_baker(posted_order.id, users["baker_b"].id)

    assert [o.id for o in service.get_buyer_orders(users["buyer"].id)] == [posted_order.id, second.id]
    assert [o.id for o in service.get_quoted_orders(users["baker_a"].id)] == [second.id]
    assert [o.id for o in service.get_baker_orders(users["baker_b"].id)] == [posted_order.id]
    assert posted_order.id not in [o.id for o in service.get_available_orders()]


def test_quote_competition_then_cancel_in_window(service, users, clock):
    buyer = users["buyer"].id
    order = service.create_order(buyer, DESIGN, "10001", clock.now + timedelta(days=10))
    assert order.status == POSTED

    service.send_quote(order.id, users["baker_a"].id, 50, "", "A offer")
    service.send_quote(order.id, users["baker_b"].id, 60, "", "B offer")
    service.assign_baker(order.id, users["baker_a"].id)

    order = service.get_order(order.id)
    assert order.status == BAKER_ASSIGNED
    assert order.baker_id == users["baker_a"].id
    # B's quote stays active but can no longer be acted on
    assert has_active_baker_quote(order, users["baker_b"].id)

    clock.advance(hours=2)
    assert service.cancel_order(order.id, buyer) is True
    assert service.get_order(order.id).status == CANCELLED


def test_late_decline_leaves_assignment(service, posted_order, users, clock):
    baker = users["baker_a"].id
    service.assign_baker(posted_order.id, baker)
    clock.advance(hours=26)

    order = service.get_order(posted_order.id)
    assert service.can_decline(order, baker) is False
    assert service.decline_order(posted_order.id, baker) is False
    assert service.get_order(posted_order.id).status == BAKER_ASSIGNED
