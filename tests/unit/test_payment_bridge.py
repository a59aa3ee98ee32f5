"""Unit tests for the Snap overlay bridge."""

from typing import Any

import pytest

from src.schemas.payment import PaymentOutcome
from src.services.payment_bridge import (
    PaymentBridge,
    PaymentBridgeNotReady,
    SnapCallbacks,
    outcome_to_status,
)
from src.services.payment_status import OrderStatus


class FakeSnap:
    """Records the callbacks handed to ``pay`` so tests can fire them."""

    def __init__(self) -> None:
        self.tokens: list[str] = []
        self.callbacks: SnapCallbacks | None = None

    def pay(self, token: str, callbacks: SnapCallbacks) -> None:
        self.tokens.append(token)
        self.callbacks = callbacks


@pytest.fixture
def snap() -> FakeSnap:
    return FakeSnap()


@pytest.fixture
def received() -> list[tuple[PaymentOutcome, dict[str, Any] | None]]:
    return []


class TestPaymentBridge:
    """Tests for PaymentBridge.pay."""

    def test_pay_opens_overlay_with_token(self, snap: FakeSnap, received: list) -> None:
        bridge = PaymentBridge(snap)

        attempt = bridge.pay("snap-token", lambda outcome, result: received.append((outcome, result)))

        assert snap.tokens == ["snap-token"]
        assert attempt.is_settled is False

    def test_success_dispatched_with_result(self, snap: FakeSnap, received: list) -> None:
        bridge = PaymentBridge(snap)
        attempt = bridge.pay("snap-token", lambda outcome, result: received.append((outcome, result)))

        snap.callbacks.on_success({"transaction_status": "settlement"})

        assert received == [(PaymentOutcome.SUCCESS, {"transaction_status": "settlement"})]
        assert attempt.outcome == PaymentOutcome.SUCCESS

    def test_only_first_outcome_is_delivered(self, snap: FakeSnap, received: list) -> None:
        bridge = PaymentBridge(snap)
        bridge.pay("snap-token", lambda outcome, result: received.append((outcome, result)))

        snap.callbacks.on_pending({"transaction_status": "pending"})
        snap.callbacks.on_close()
        snap.callbacks.on_error({"status_code": "500"})

        assert received == [(PaymentOutcome.PENDING, {"transaction_status": "pending"})]

    def test_close_carries_no_result(self, snap: FakeSnap, received: list) -> None:
        bridge = PaymentBridge(snap)
        bridge.pay("snap-token", lambda outcome, result: received.append((outcome, result)))

        snap.callbacks.on_close()

        assert received == [(PaymentOutcome.CLOSED, None)]

    def test_each_attempt_settles_independently(self, snap: FakeSnap, received: list) -> None:
        bridge = PaymentBridge(snap)
        first = bridge.pay("token-1", lambda outcome, result: received.append((outcome, result)))
        first_callbacks = snap.callbacks
        bridge.pay("token-2", lambda outcome, result: received.append((outcome, result)))
        second_callbacks = snap.callbacks

        first_callbacks.on_close()
        second_callbacks.on_success({})

        assert first.outcome == PaymentOutcome.CLOSED
        assert [outcome for outcome, _ in received] == [PaymentOutcome.CLOSED, PaymentOutcome.SUCCESS]

    def test_pay_without_handle_raises(self) -> None:
        bridge = PaymentBridge()

        assert bridge.is_ready is False
        with pytest.raises(PaymentBridgeNotReady):
            bridge.pay("snap-token", lambda outcome, result: None)


class TestOutcomeToStatus:
    def test_closed_changes_nothing(self) -> None:
        assert outcome_to_status(PaymentOutcome.CLOSED) is None
        assert outcome_to_status(PaymentOutcome.CLOSED, "settlement") is None

    @pytest.mark.parametrize(
        ("outcome", "expected"),
        [
            (PaymentOutcome.SUCCESS, OrderStatus.PAID),
            (PaymentOutcome.PENDING, OrderStatus.PENDING),
            (PaymentOutcome.ERROR, OrderStatus.FAILED),
        ],
    )
    def test_fallback_without_gateway_status(self, outcome: PaymentOutcome, expected: OrderStatus) -> None:
        assert outcome_to_status(outcome) == expected

    def test_gateway_status_uses_webhook_mapping(self) -> None:
        assert outcome_to_status(PaymentOutcome.SUCCESS, "capture", "challenge") == OrderStatus.FAILED
        assert outcome_to_status(PaymentOutcome.SUCCESS, "settlement", "accept") == OrderStatus.PAID
        assert outcome_to_status(PaymentOutcome.PENDING, "expire") == OrderStatus.EXPIRED
