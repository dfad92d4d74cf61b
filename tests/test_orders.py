import aiohttp
import pytest
from sqlalchemy import select

from medplant.modules.payments.domain.models.payment_order import OrderStatus
from medplant.modules.payments.domain.models.plans import PLANS, PlanKind, get_plan
from medplant.modules.payments.domain.services.order_service import OrderService, build_receipt
from medplant.modules.payments.infrastructure.database.models import PaymentOrderModel
from medplant.modules.payments.infrastructure.database.payment_repository_impl import (
    PaymentOrderRepositoryImpl,
)
from medplant.modules.payments.infrastructure.external.razorpay_client import RazorpayClient
from medplant.modules.payments.presentation.dependencies import get_order_service
from medplant.shared.core.exceptions import (
    InvalidRequestError,
    PaymentProviderError,
    ServerMisconfiguredError,
)

from fakes import FakeResponse, FakeSession

EPOCH_MS = 1767225600000


def razorpay(responses, key_id="rzp_test_key", key_secret="rzp_test_secret"):
    session = FakeSession(responses)
    client = RazorpayClient(key_id, key_secret, api_url="https://razorpay.test/v1", session=session)
    return client, session


def order_entity(order_id="order_Q1", amount=7900):
    return FakeResponse(200, payload={"id": order_id, "amount": amount, "currency": "INR", "status": "created"})


def test_plan_catalogue():
    assert get_plan("pack_10").credits == 10
    assert get_plan("pro_unlimited_yearly").duration_days == 365
    assert get_plan("nope") is None
    assert get_plan(None) is None
    assert all(plan.amount > 0 for plan in PLANS.values())
    assert {plan.kind for plan in PLANS.values()} == {PlanKind.CREDIT_PACK, PlanKind.SUBSCRIPTION}


def test_receipt_format():
    assert build_receipt("abcdefghijkl", EPOCH_MS) == f"rcpt_abcdefgh_{EPOCH_MS}"


@pytest.mark.asyncio
async def test_create_order_stores_created_order(session_manager):
    client, session = razorpay([order_entity()])
    service = OrderService(client, session_scope=session_manager.get_session, clock_ms=lambda: EPOCH_MS)

    data = await service.create_order(user_id="user_1", plan_id="pack_10")

    assert data == {"order_id": "order_Q1", "amount": 7900, "currency": "INR", "key_id": "rzp_test_key"}

    call = session.calls[0]
    assert call["url"] == "https://razorpay.test/v1/orders"
    assert call["json"]["amount"] == 7900
    assert call["json"]["receipt"] == f"rcpt_user_1_{EPOCH_MS}"
    assert call["json"]["notes"] == {"user_id": "user_1", "plan_id": "pack_10"}
    assert isinstance(call["auth"], aiohttp.BasicAuth)

    async with session_manager.get_session() as db:
        stored = await PaymentOrderRepositoryImpl(db).get_by_order_id("order_Q1")
    assert stored.status == OrderStatus.CREATED
    assert stored.plan_id == "pack_10"
    assert stored.user_id == "user_1"


@pytest.mark.asyncio
async def test_unknown_plan_is_rejected_before_provider_call(session_manager):
    client, session = razorpay([])
    service = OrderService(client, session_scope=session_manager.get_session)

    with pytest.raises(InvalidRequestError):
        await service.create_order(user_id="user_1", plan_id="pack_9000")

    assert session.calls == []


@pytest.mark.asyncio
async def test_missing_credentials_are_reported(session_manager):
    client, session = razorpay([], key_secret=None)
    service = OrderService(client, session_scope=session_manager.get_session)

    with pytest.raises(ServerMisconfiguredError) as exc_info:
        await service.create_order(user_id="user_1", plan_id="pack_10")

    assert "RAZORPAY_KEY_SECRET" in exc_info.value.message
    assert session.calls == []


@pytest.mark.asyncio
async def test_provider_rejection_is_a_gateway_error(session_manager):
    rejection = FakeResponse(400, text='{"error": {"code": "BAD_REQUEST_ERROR", "description": "amount too low"}}')
    client, _ = razorpay([rejection])
    service = OrderService(client, session_scope=session_manager.get_session)

    with pytest.raises(PaymentProviderError) as exc_info:
        await service.create_order(user_id="user_1", plan_id="pack_1")

    assert exc_info.value.status_code == 502
    assert exc_info.value.details["provider_status"] == 400


@pytest.mark.asyncio
async def test_html_success_page_is_a_gateway_error(session_manager):
    maintenance = FakeResponse(200, text="<html><body>Scheduled maintenance</body></html>")
    client, _ = razorpay([maintenance])
    service = OrderService(client, session_scope=session_manager.get_session)

    with pytest.raises(PaymentProviderError) as exc_info:
        await service.create_order(user_id="user_1", plan_id="pack_1")

    assert exc_info.value.status_code == 502
    async with session_manager.get_session() as session:
        assert (await session.scalars(select(PaymentOrderModel))).all() == []


@pytest.mark.asyncio
async def test_orders_route_returns_checkout_payload(app, client, session_manager):
    razorpay_client, _ = razorpay([order_entity(order_id="order_R1", amount=9900)])

    async def override():
        yield OrderService(razorpay_client, session_scope=session_manager.get_session)

    app.dependency_overrides[get_order_service] = override

    response = await client.post("/payments/orders", json={"plan_id": "pro_basic", "user_id": "user_1"})

    assert response.status_code == 201
    assert response.json() == {
        "success": True,
        "data": {"order_id": "order_R1", "amount": 9900, "currency": "INR", "key_id": "rzp_test_key"},
    }


@pytest.mark.asyncio
async def test_orders_route_validates_body(app, client):
    response = await client.post("/payments/orders", json={"plan_id": "pack_10"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["type"] == "INVALID_REQUEST"
    assert any(item["field"].endswith("user_id") for item in error["details"]["errors"])
