import json

import httpx
import pytest

from app.core.exceptions import GatewayError
from app.services.payment_service import PaymentService, compute_signature
from conftest import FakeGateway, RAZORPAY_SECRET


def mutate(value: str, index: int) -> str:
    replacement = "0" if value[index] != "0" else "1"
    return value[:index] + replacement + value[index + 1:]


def test_signature_matches_reference_hmac():
    # hex(HMAC-SHA256("secret", "order_abc|pay_xyz"))
    import hashlib
    import hmac
    expected = hmac.new(b"secret", b"order_abc|pay_xyz", hashlib.sha256).hexdigest()
    assert compute_signature("secret", "order_abc", "pay_xyz") == expected


def test_verify_callback_accepts_valid_signature(payment_service):
    signature = compute_signature(RAZORPAY_SECRET, "order_abc", "pay_xyz")
    assert payment_service.verify_callback("order_abc", "pay_xyz", signature) is True


def test_any_single_character_mutation_fails(payment_service):
    order_id, payment_id = "order_abc", "pay_xyz"
    signature = compute_signature(RAZORPAY_SECRET, order_id, payment_id)

    for i in range(len(signature)):
        assert not payment_service.verify_callback(order_id, payment_id, mutate(signature, i))
    for i in range(len(order_id)):
        assert not payment_service.verify_callback(mutate(order_id, i), payment_id, signature)
    for i in range(len(payment_id)):
        assert not payment_service.verify_callback(order_id, mutate(payment_id, i), signature)


def test_swapped_ids_fail(payment_service):
    signature = compute_signature(RAZORPAY_SECRET, "order_abc", "pay_xyz")
    assert not payment_service.verify_callback("pay_xyz", "order_abc", signature)


def test_malformed_signatures_return_false(payment_service):
    assert payment_service.verify_callback("order_abc", "pay_xyz", "") is False
    assert payment_service.verify_callback("order_abc", "pay_xyz", "zz" * 32) is False
    assert payment_service.verify_callback("order_abc", "pay_xyz", "ü" * 64) is False
    assert payment_service.verify_callback("order_abc", "pay_xyz", None) is False


def test_signature_from_other_secret_fails(payment_service):
    signature = compute_signature("another-secret", "order_abc", "pay_xyz")
    assert not payment_service.verify_callback("order_abc", "pay_xyz", signature)


def test_no_secret_never_verifies():
    service = PaymentService(key_id="k", base_url="https://gateway.test/v1")
    service.key_secret = None
    assert service.verify_callback("order_abc", "pay_xyz", "a" * 64) is False


@pytest.mark.anyio
async def test_create_order_posts_minor_units(payment_service, gateway):
    order_id = await payment_service.create_order(50000, "INR")

    assert order_id == "order_abc"
    request = gateway.requests[0]
    assert request.url.path == "/v1/orders"
    body = json.loads(request.content)
    assert body["amount"] == 50000
    assert body["currency"] == "INR"
    assert body["receipt"].startswith("receipt_")
    assert body["receipt"][len("receipt_"):].isdigit()
    assert request.headers["authorization"].startswith("Basic ")


@pytest.mark.anyio
async def test_create_order_upstream_error():
    service = PaymentService(
        key_id="k",
        key_secret="s",
        base_url="https://gateway.test/v1",
        transport=httpx.MockTransport(FakeGateway(status_code=500)),
    )
    with pytest.raises(GatewayError):
        await service.create_order(100, "INR")


@pytest.mark.anyio
async def test_create_order_transport_error():
    def broken(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = PaymentService(
        key_id="k",
        key_secret="s",
        base_url="https://gateway.test/v1",
        transport=httpx.MockTransport(broken),
    )
    with pytest.raises(GatewayError):
        await service.create_order(100, "INR")


@pytest.mark.anyio
async def test_create_order_without_id():
    service = PaymentService(
        key_id="k",
        key_secret="s",
        base_url="https://gateway.test/v1",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"status": "created"})),
    )
    with pytest.raises(GatewayError):
        await service.create_order(100, "INR")
