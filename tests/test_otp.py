"""Email OTP: issue, reuse, rotate, verify, exhaust and expire."""
import re
import threading
from datetime import timedelta

import pytest

from print_station.config import get_settings
from print_station.database import SessionLocal
from print_station.errors import AttemptsExhausted, DeliveryError, InvalidOtp, OtpExpired
from print_station.models.otp import OTP
from print_station.services import otp as otp_service
from print_station.utils import utcnow

EMAIL = "new.client@example.com"


def _last_code(mailer):
    return re.search(r"\b(\d{6})\b", mailer.sent[-1]["text"]).group(1)


def _rows(db, email=EMAIL):
    db.expire_all()
    return db.query(OTP).filter(OTP.email == email).all()


def test_send_otp_emails_six_digit_code(client, mailer, db):
    r = client.post("/otp/send-otp", json={"email": EMAIL})
    assert r.status_code == 200
    assert r.json()["data"]["expiresIn"] == "30 minutes"
    assert mailer.sent[-1]["to"] == EMAIL
    code = _last_code(mailer)
    rows = _rows(db)
    assert len(rows) == 1
    assert rows[0].code == code
    assert rows[0].attempts == 0


def test_send_twice_reuses_outstanding_code(client, mailer, db):
    client.post("/otp/send-otp", json={"email": EMAIL})
    first = _last_code(mailer)
    client.post("/otp/send-otp", json={"email": EMAIL})
    assert _last_code(mailer) == first
    assert len(_rows(db)) == 1
    r = client.post("/otp/verify-otp", json={"email": EMAIL, "otp": first})
    assert r.status_code == 200


def test_resend_rotates_code(client, mailer, db):
    client.post("/otp/send-otp", json={"email": EMAIL})
    wrong = "000000" if _last_code(mailer) != "000000" else "111111"
    client.post("/otp/verify-otp", json={"email": EMAIL, "otp": wrong})
    assert _rows(db)[0].attempts == 1

    r = client.post("/otp/resend-otp", json={"email": EMAIL})
    assert r.status_code == 200
    rows = _rows(db)
    assert len(rows) == 1
    # A fresh row: counter reset and the stored code is the one just emailed
    assert rows[0].attempts == 0
    assert rows[0].code == _last_code(mailer)
    assert len(mailer.sent) == 2


def test_verify_then_check_verification(client, mailer):
    client.post("/otp/send-otp", json={"email": EMAIL})
    r = client.get(f"/otp/check-verification/{EMAIL}")
    assert r.json()["data"]["isVerified"] is False

    r = client.post("/otp/verify-otp", json={"email": EMAIL, "otp": _last_code(mailer)})
    assert r.status_code == 200
    assert r.json()["data"]["verified"] is True

    data = client.get(f"/otp/check-verification/{EMAIL}").json()["data"]
    assert data["isVerified"] is True
    assert data["verifiedAt"]


def test_wrong_code_reports_remaining_attempts(client, mailer, db):
    client.post("/otp/send-otp", json={"email": EMAIL})
    wrong = "000000" if _last_code(mailer) != "000000" else "111111"
    r = client.post("/otp/verify-otp", json={"email": EMAIL, "otp": wrong})
    assert r.status_code == 400
    assert r.json()["remainingAttempts"] == 4
    assert _rows(db)[0].attempts == 1


def test_sixth_attempt_exhausted_even_with_correct_code(client, mailer, db):
    client.post("/otp/send-otp", json={"email": EMAIL})
    code = _last_code(mailer)
    wrong = "000000" if code != "000000" else "111111"
    for expected_remaining in (4, 3, 2, 1, 0):
        r = client.post("/otp/verify-otp", json={"email": EMAIL, "otp": wrong})
        assert r.json()["remainingAttempts"] == expected_remaining

    r = client.post("/otp/verify-otp", json={"email": EMAIL, "otp": code})
    assert r.status_code == 400
    assert r.json()["message"].startswith("Maximum verification attempts exceeded")
    assert _rows(db) == []


def test_verify_without_code_on_record(client):
    r = client.post("/otp/verify-otp", json={"email": EMAIL, "otp": "123456"})
    assert r.status_code == 400
    assert "request a new one" in r.json()["message"]


def test_verify_rejects_malformed_code(client):
    r = client.post("/otp/verify-otp", json={"email": EMAIL, "otp": "12ab"})
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "otp"


def test_delivery_failure_rolls_back(client, mailer, db):
    mailer.fail = True
    r = client.post("/otp/send-otp", json={"email": EMAIL})
    assert r.status_code == 503
    assert r.json()["success"] is False
    assert _rows(db) == []


def test_check_verification_rejects_bad_email(client):
    assert client.get("/otp/check-verification/not-an-email").status_code == 400


# --- service level ---


def test_expired_code_is_rejected_and_deleted(db, mailer):
    otp = otp_service.send_otp(db, EMAIL, mailer)
    otp.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()
    with pytest.raises(OtpExpired):
        otp_service.verify_otp(db, EMAIL, otp.code)
    assert _rows(db) == []


def test_send_replaces_expired_code(db, mailer):
    first = otp_service.send_otp(db, EMAIL, mailer)
    first.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()
    otp_service.send_otp(db, EMAIL, mailer)
    rows = _rows(db)
    assert len(rows) == 1
    assert not rows[0].is_expired()
    assert rows[0].code == _last_code(mailer)
    otp_service.verify_otp(db, EMAIL, rows[0].code)


def test_exhaustion_at_service_level(db, mailer):
    otp = otp_service.send_otp(db, EMAIL, mailer)
    code = otp.code
    wrong = "000000" if code != "000000" else "111111"
    for _ in range(get_settings().otp_max_attempts):
        with pytest.raises(InvalidOtp):
            otp_service.verify_otp(db, EMAIL, wrong)
    with pytest.raises(AttemptsExhausted):
        otp_service.verify_otp(db, EMAIL, code)
    assert _rows(db) == []


def test_send_otp_raises_delivery_error(db, mailer):
    mailer.fail = True
    with pytest.raises(DeliveryError):
        otp_service.send_otp(db, EMAIL, mailer)
    assert _rows(db) == []


def test_purge_expired_otps(db, mailer):
    keep = otp_service.send_otp(db, "keep@example.com", mailer)
    gone = otp_service.send_otp(db, EMAIL, mailer)
    gone.expires_at = utcnow() - timedelta(seconds=1)
    db.commit()
    assert otp_service.purge_expired_otps() == 1
    assert _rows(db) == []
    assert [r.id for r in _rows(db, "keep@example.com")] == [keep.id]


def test_generate_otp_is_six_digits():
    for _ in range(20):
        code = otp_service.generate_otp()
        assert len(code) == 6 and code.isdigit()


def test_parallel_wrong_guesses_each_count(db, mailer, monkeypatch):
    otp = otp_service.send_otp(db, EMAIL, mailer)
    wrong = "000000" if otp.code != "000000" else "111111"

    # Both requests have read the row before either one records its miss
    both_read = threading.Barrier(2, timeout=10)
    real_compare = otp_service.secrets.compare_digest

    def compare_after_both_read(a, b):
        both_read.wait()
        return real_compare(a, b)

    monkeypatch.setattr(otp_service.secrets, "compare_digest", compare_after_both_read)
    remaining = []

    def guess():
        session = SessionLocal()
        try:
            otp_service.verify_otp(session, EMAIL, wrong)
        except InvalidOtp as e:
            remaining.append(e.extra["remainingAttempts"])
        finally:
            session.close()

    threads = [threading.Thread(target=guess) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=15)

    assert len(remaining) == 2
    assert _rows(db)[0].attempts == 2


def test_guess_after_parallel_request_used_last_attempt(db, mailer):
    otp = otp_service.send_otp(db, EMAIL, mailer)
    wrong = "000000" if otp.code != "000000" else "111111"
    max_attempts = get_settings().otp_max_attempts
    otp.attempts = max_attempts - 1
    db.commit()
    # This session now holds the row with one attempt left
    assert otp_service._outstanding(db, EMAIL).attempts == max_attempts - 1

    other = SessionLocal()
    try:
        other.query(OTP).filter(OTP.email == EMAIL).update({OTP.attempts: max_attempts})
        other.commit()
    finally:
        other.close()

    with pytest.raises(AttemptsExhausted):
        otp_service.verify_otp(db, EMAIL, wrong)
    assert _rows(db) == []
