import os

# Must be set before the app's settings are built
os.environ.setdefault("ENVIRONMENT", "development")
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test_razorpay_secret"
os.environ["OTP_STORE_BACKEND"] = "memory"

import anyio
import httpx
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.db import mongo
from app.db.indexes import create_indexes
from app.main import app
from app.services.email_service import get_email_service
from app.services.otp_service import OtpService, get_otp_service
from app.services.otp_store import InMemoryOtpStore
from app.services.payment_service import PaymentService, get_payment_service

RAZORPAY_SECRET = "test_razorpay_secret"


class FakeSmsSender:
    """Records SMS instead of calling Twilio."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send_sms(self, to_phone, message):
        if self.fail:
            return {"success": False, "error": "Twilio API error: 500"}
        self.sent.append((to_phone, message))
        return {"success": True, "message_sid": f"SM{len(self.sent)}"}

    def last_code(self, mobile):
        for to_phone, message in reversed(self.sent):
            if to_phone == mobile:
                return message.rsplit(" ", 1)[-1]
        return None


class FakeEmailService:
    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent = []

    async def send_email(self, to_email, subject, html_content, attachments=None):
        self.sent.append({
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "attachments": attachments or [],
        })
        return self.succeed


class FakeGateway:
    """httpx handler standing in for the Razorpay Orders API."""

    def __init__(self, order_id="order_abc", status_code=200):
        self.order_id = order_id
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"description": "bad"}})
        return httpx.Response(200, json={"id": self.order_id, "status": "created"})


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db():
    client = AsyncMongoMockClient()
    mongo.use_client(client, "bookstore_test")
    anyio.run(create_indexes)
    yield mongo.get_database()
    mongo._client = None
    mongo._database = None


@pytest.fixture
def sms():
    return FakeSmsSender()


@pytest.fixture
def otp_service(db, sms):
    return OtpService(store=InMemoryOtpStore(), sms_sender=sms)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def payment_service(gateway):
    return PaymentService(
        key_id="rzp_test_key",
        key_secret=RAZORPAY_SECRET,
        base_url="https://gateway.test/v1",
        transport=httpx.MockTransport(gateway),
    )


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def client(db, otp_service, payment_service, email_service):
    app.dependency_overrides[get_otp_service] = lambda: otp_service
    app.dependency_overrides[get_payment_service] = lambda: payment_service
    app.dependency_overrides[get_email_service] = lambda: email_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
