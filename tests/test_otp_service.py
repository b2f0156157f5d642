from datetime import datetime, timedelta

import httpx
import pytest

from app.core.exceptions import DeliveryError, ExpiredOrInvalidOtpError
from app.services.otp_service import OtpService, generate_otp
from app.services.otp_store import InMemoryOtpStore, MongoOtpStore
from app.services.twilio_service import TwilioService
from conftest import Clock, FakeSmsSender

pytestmark = pytest.mark.anyio

MOBILE = "8888888888"


def make_service(store=None, sms=None, clock=None):
    return OtpService(
        store=store or InMemoryOtpStore(),
        sms_sender=sms or FakeSmsSender(),
        expiry_minutes=5,
        clock=clock or Clock(datetime(2026, 1, 1, 12, 0, 0)),
    )


def wrong_code(code):
    return "000000" if code != "000000" else "111111"


def test_generated_codes_are_six_digits():
    for _ in range(200):
        code = generate_otp()
        assert len(code) == 6 and code.isdigit()


async def test_request_sends_sms_with_code(db):
    sms = FakeSmsSender()
    service = make_service(sms=sms)

    await service.request_challenge(MOBILE)

    to_phone, message = sms.sent[0]
    assert to_phone == MOBILE
    assert message.startswith("ShyamBooks OTP: ")
    assert len(sms.last_code(MOBILE)) == 6


async def test_wrong_code_then_correct_code_once(db):
    sms = FakeSmsSender()
    service = make_service(sms=sms)
    await service.request_challenge(MOBILE)
    code = sms.last_code(MOBILE)

    with pytest.raises(ExpiredOrInvalidOtpError):
        await service.verify_challenge(MOBILE, wrong_code(code))

    user = await service.verify_challenge(MOBILE, code)
    assert user["mobile"] == MOBILE
    assert user["isNewUser"] is True

    with pytest.raises(ExpiredOrInvalidOtpError):
        await service.verify_challenge(MOBILE, code)


async def test_no_challenge_is_rejected(db):
    with pytest.raises(ExpiredOrInvalidOtpError):
        await make_service().verify_challenge(MOBILE, "123456")


async def test_new_request_invalidates_previous_code(db):
    sms = FakeSmsSender()
    store = InMemoryOtpStore()
    service = make_service(store=store, sms=sms)

    await service.request_challenge(MOBILE)
    first = sms.last_code(MOBILE)
    await service.request_challenge(MOBILE)
    second = sms.last_code(MOBILE)

    if first != second:
        with pytest.raises(ExpiredOrInvalidOtpError):
            await service.verify_challenge(MOBILE, first)
    assert (await service.verify_challenge(MOBILE, second))["mobile"] == MOBILE


async def test_expiry_boundary(db):
    sms = FakeSmsSender()
    clock = Clock(datetime(2026, 1, 1, 12, 0, 0))
    service = make_service(sms=sms, clock=clock)

    await service.request_challenge(MOBILE)
    code = sms.last_code(MOBILE)

    clock.now += timedelta(minutes=5)
    with pytest.raises(ExpiredOrInvalidOtpError):
        await service.verify_challenge(MOBILE, code)


async def test_just_before_expiry_succeeds(db):
    sms = FakeSmsSender()
    clock = Clock(datetime(2026, 1, 1, 12, 0, 0))
    service = make_service(sms=sms, clock=clock)

    await service.request_challenge(MOBILE)
    clock.now += timedelta(minutes=4, seconds=59)

    user = await service.verify_challenge(MOBILE, sms.last_code(MOBILE))
    assert user["mobile"] == MOBILE


async def test_dispatch_failure_rolls_back_challenge(db):
    store = InMemoryOtpStore()
    service = make_service(store=store, sms=FakeSmsSender(fail=True))

    with pytest.raises(DeliveryError):
        await service.request_challenge(MOBILE)

    assert await store.get(MOBILE) is None


async def test_dispatch_failure_keeps_no_usable_code(db):
    store = InMemoryOtpStore()
    good_sms = FakeSmsSender()
    await make_service(store=store, sms=good_sms).request_challenge(MOBILE)
    old_code = good_sms.last_code(MOBILE)

    with pytest.raises(DeliveryError):
        await make_service(store=store, sms=FakeSmsSender(fail=True)).request_challenge(MOBILE)

    # The failed request overwrote the old code before rolling back its own
    with pytest.raises(ExpiredOrInvalidOtpError):
        await make_service(store=store).verify_challenge(MOBILE, old_code)


async def test_existing_user_is_resolved_not_duplicated(db):
    from app.services import user_service
    registered = await user_service.register(password="pw123456", mobile=MOBILE)
    await db["users"].update_one({"_id": registered["_id"]}, {"$set": {"isNewUser": False}})

    sms = FakeSmsSender()
    service = make_service(sms=sms)
    await service.request_challenge(MOBILE)
    user = await service.verify_challenge(MOBILE, sms.last_code(MOBILE))

    assert user["_id"] == registered["_id"]
    assert user["isNewUser"] is False
    assert await db["users"].count_documents({"mobile": MOBILE}) == 1


async def test_mongo_store_round_trip(db):
    sms = FakeSmsSender()
    store = MongoOtpStore()
    service = make_service(store=store, sms=sms)

    await service.request_challenge(MOBILE)
    await service.request_challenge(MOBILE)
    assert await db["otp_challenges"].count_documents({"mobile": MOBILE}) == 1

    await service.verify_challenge(MOBILE, sms.last_code(MOBILE))
    assert await db["otp_challenges"].count_documents({"mobile": MOBILE}) == 0


def twilio(handler):
    return TwilioService(
        account_sid="AC123",
        auth_token="token",
        from_number="+15550001111",
        transport=httpx.MockTransport(handler),
    )


async def test_request_through_twilio_client(db):
    store = InMemoryOtpStore()
    sent = []

    def handler(request):
        sent.append(request)
        return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

    service = make_service(store=store, sms=twilio(handler))
    await service.request_challenge(MOBILE)

    challenge = await store.get(MOBILE)
    assert challenge is not None
    assert challenge.code in sent[0].content.decode()

    user = await service.verify_challenge(MOBILE, challenge.code)
    assert user["mobile"] == MOBILE


async def test_sender_exception_rolls_back_challenge(db):
    class BrokenSender:
        async def send_sms(self, to_phone, message):
            raise RuntimeError("socket closed")

    store = InMemoryOtpStore()
    with pytest.raises(DeliveryError):
        await make_service(store=store, sms=BrokenSender()).request_challenge(MOBILE)

    assert await store.get(MOBILE) is None


async def test_non_json_twilio_reply_rolls_back_challenge(db):
    store = InMemoryOtpStore()
    sms = twilio(lambda request: httpx.Response(201, text="<html>maintenance</html>"))

    with pytest.raises(DeliveryError):
        await make_service(store=store, sms=sms).request_challenge(MOBILE)

    assert await store.get(MOBILE) is None


async def test_expired_challenge_is_removed(db):
    sms = FakeSmsSender()
    store = InMemoryOtpStore()
    clock = Clock(datetime(2026, 1, 1, 12, 0, 0))
    service = make_service(store=store, sms=sms, clock=clock)

    await service.request_challenge(MOBILE)
    clock.now += timedelta(minutes=6)

    with pytest.raises(ExpiredOrInvalidOtpError):
        await service.verify_challenge(MOBILE, sms.last_code(MOBILE))
    assert await store.get(MOBILE) is None


async def test_new_request_evicts_other_expired_challenges(db):
    store = InMemoryOtpStore()
    clock = Clock(datetime(2026, 1, 1, 12, 0, 0))
    service = make_service(store=store, clock=clock)

    await service.request_challenge(MOBILE)
    clock.now += timedelta(minutes=6)
    await service.request_challenge("7777777777")

    assert await store.get(MOBILE) is None
    assert await store.get("7777777777") is not None
