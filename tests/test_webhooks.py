"""Tests for the Stripe webhook: signature checks and idempotent payment handling."""

import json

from conftest import checkout_completed_event, order_payload, payment_failed_event, post_webhook, stripe_signature


def _new_order(client):
    response = client.post("/api/orders/create", json=order_payload())
    assert response.status_code == 200
    return response.json()["orderId"]


def _order(client, order_id):
    return client.get("/api/orders/create", params={"orderId": order_id}).json()["order"]


class TestSignature:
    def test_missing_signature(self, client):
        response = client.post("/api/orders/webhook", content=json.dumps(checkout_completed_event("order_x")))
        assert response.status_code == 400
        assert response.json() == {"error": "Missing Stripe signature"}

    def test_wrong_secret(self, client):
        order_id = _new_order(client)

        response = post_webhook(client, checkout_completed_event(order_id), secret="whsec_someone_else")

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid signature"}
        assert _order(client, order_id)["status"] == "pending_payment"

    def test_tampered_payload(self, client):
        order_id = _new_order(client)
        signed = json.dumps(checkout_completed_event("order_other"))
        sent = json.dumps(checkout_completed_event(order_id))

        response = client.post(
            "/api/orders/webhook",
            content=sent,
            headers={"Stripe-Signature": stripe_signature(signed)},
        )

        assert response.status_code == 400
        assert _order(client, order_id)["status"] == "pending_payment"

    def test_expired_timestamp(self, client):
        payload = json.dumps(checkout_completed_event("order_x"))
        response = client.post(
            "/api/orders/webhook",
            content=payload,
            headers={"Stripe-Signature": stripe_signature(payload, timestamp=1_000_000_000)},
        )
        assert response.status_code == 400

    def test_body_that_is_not_utf8(self, client):
        response = client.post(
            "/api/orders/webhook",
            content=b"\xff\xfe{}",
            headers={"Stripe-Signature": "t=1,v1=abc"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid signature"}

    def test_signed_body_that_is_not_an_object(self, client):
        payload = json.dumps(["checkout.session.completed"])
        response = client.post(
            "/api/orders/webhook",
            content=payload,
            headers={"Stripe-Signature": stripe_signature(payload)},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid signature"}


class TestCheckoutCompleted:
    def test_order_moves_to_building_then_completes(self, client, runner):
        order_id = _new_order(client)

        response = post_webhook(client, checkout_completed_event(order_id, payment_intent="pi_live"))

        assert response.status_code == 200
        assert response.json() == {"received": True}
        order = _order(client, order_id)
        assert order["status"] == "building"
        assert order["progress"] == 0
        assert order["paidAt"] is not None
        assert order["stripePaymentIntentId"] == "pi_live"

        runner.run_all()
        order = _order(client, order_id)
        assert order["status"] == "completed"
        assert order["progress"] == 100
        assert order["deliveryUrl"] == "https://github.com/ece-cli-generated/task-tracker"

    def test_unknown_order_is_acknowledged_without_changes(self, client, repository, runner):
        order_id = _new_order(client)

        response = post_webhook(client, checkout_completed_event("order_does_not_exist"))

        assert response.status_code == 200
        assert repository.count() == 1
        assert _order(client, order_id)["status"] == "pending_payment"
        assert runner.pending == []

    def test_event_without_order_metadata(self, client):
        response = post_webhook(client, checkout_completed_event(None))
        assert response.status_code == 200

    def test_duplicate_delivery_does_not_restart_build(self, client, runner, app):
        order_id = _new_order(client)
        event = checkout_completed_event(order_id)
        post_webhook(client, event)

        # Part way through the build
        for index in range(4):
            app.state.simulator.advance(order_id, index)
        before = _order(client, order_id)

        response = post_webhook(client, event)

        after = _order(client, order_id)
        assert response.status_code == 200
        assert after["status"] == "building"
        assert after["progress"] == before["progress"] == 30
        assert after["buildLogs"] == before["buildLogs"]
        assert after["buildId"] == before["buildId"]
        assert len(runner.pending) == 1

    def test_duplicate_after_completion(self, client, runner):
        order_id = _new_order(client)
        event = checkout_completed_event(order_id)
        post_webhook(client, event)
        runner.run_all()

        post_webhook(client, event)

        order = _order(client, order_id)
        assert order["status"] == "completed"
        assert order["progress"] == 100
        assert runner.pending == []


class TestPaymentFailed:
    def test_matches_order_by_metadata(self, client):
        order_id = _new_order(client)

        response = post_webhook(client, payment_failed_event("pi_declined", order_id=order_id))

        assert response.status_code == 200
        order = _order(client, order_id)
        assert order["status"] == "payment_failed"
        assert order["paymentFailedAt"] is not None

    def test_checkout_completed_after_decline_starts_build(self, client, runner):
        order_id = _new_order(client)
        post_webhook(client, payment_failed_event("pi_declined", order_id=order_id))

        response = post_webhook(client, checkout_completed_event(order_id, payment_intent="pi_ok"))

        assert response.status_code == 200
        order = _order(client, order_id)
        assert order["status"] == "building"
        assert order["paidAt"] is not None
        assert order["stripePaymentIntentId"] == "pi_ok"
        assert len(runner.pending) == 1

    def test_unknown_payment_intent(self, client):
        order_id = _new_order(client)
        assert post_webhook(client, payment_failed_event("pi_nobody")).status_code == 200
        assert _order(client, order_id)["status"] == "pending_payment"


def test_other_event_types_are_acknowledged(client):
    event = {"id": "evt_1", "type": "customer.created", "data": {"object": {"id": "cus_1"}}}
    assert post_webhook(client, event).json() == {"received": True}


def test_handler_failure_returns_500(client, app):
    def explode(*args, **kwargs):
        raise RuntimeError("lost connection")

    app.state.lifecycle.mark_paid = explode

    response = post_webhook(client, checkout_completed_event("order_x"))

    assert response.status_code == 500
    assert response.json() == {"error": "Webhook processing failed"}
