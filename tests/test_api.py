# tests/test_api.py

import csv
import io

import pytest
from fastapi.testclient import TestClient

from rsvpdesk.config import validate_settings
from rsvpdesk.exceptions import ConfigurationError, ReferralCodeExhaustedError
from rsvpdesk.main import create_app
from rsvpdesk.services.referral_service import is_valid_referral_code

from tests.conftest import ADMIN_HEADERS, ADMIN_PASSWORD, FailingTransport, make_settings, sample_rsvp

UNAUTHORIZED = {"error": "Unauthorized. Valid admin credentials required."}


def submit(client, **overrides):
    response = client.post("/api/rsvp", json=sample_rsvp(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


# --- Public endpoints ---
def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["engine"] == "sqlite"


def test_submit_then_list(client):
    """The end-to-end flow a guest and an admin go through"""
    created = submit(client, phone_number=" 555-0100 ", message="Can't wait!")

    assert created["success"] is True
    assert created["message"] == "RSVP submitted successfully!"
    assert created["full_name"] == "Jane Doe"
    assert created["rsvp_status"] == "Yes"
    assert is_valid_referral_code(created["referral_id"])

    response = client.get("/api/admin/rsvps", headers=ADMIN_HEADERS)
    assert response.status_code == 200

    body = response.json()
    assert body["success"] is True
    assert body["count"] == 1
    record = body["data"][0]
    assert record["id"] == created["id"]
    assert record["referral_id"] == created["referral_id"]
    assert record["phone_number"] == "555-0100"
    assert record["number_of_guests"] == 2
    assert record["receive_updates"] is True
    assert record["interest_types"] == []
    assert record["created_at"]

    stats = client.get("/api/admin/stats", headers=ADMIN_HEADERS).json()["data"]
    assert stats == {
        "totalRSVPs": 1,
        "byStatus": {"Yes": 1, "No": 0, "Maybe": 0},
        "byReferralSource": {"Friend": 1, "Social": 0, "Invite": 0},
        "wantsUpdates": 1,
    }


def test_email_is_normalized(client):
    submit(client, email="  Jane@Example.COM ")
    record = client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["data"][0]
    assert record["email"] == "jane@example.com"


def test_arrays_round_trip(client):
    submit(client, interest_types=["Volunteer", "Awareness"], donation_intent=["individual"], donation_value=100)
    record = client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["data"][0]

    assert record["interest_types"] == ["Volunteer", "Awareness"]
    assert record["donation_intent"] == ["individual"]
    assert record["donation_value"] == 100


@pytest.mark.parametrize("overrides, message", [
    ({"full_name": "   "}, "Full name is required"),
    ({"email": "not-an-email"}, "Valid email is required"),
    ({"number_of_guests": 0}, "Number of guests must be at least 1"),
    ({"rsvp_status": "Perhaps"}, "Valid RSVP status is required (Yes, No, or Maybe)"),
    ({"referral_source": "Billboard"}, "Referral source is required and must be one of: Friend, Social, Invite"),
    ({"interest_types": ["Dancing"]}, "Invalid interest type(s): Dancing"),
    ({"donation_value": 100, "donation_custom": 50}, "Provide either donation_value or donation_custom, not both"),
    ({"donation_value": 0}, "donation_value"),
    ({"donation_custom": -5}, "donation_custom"),
    ({"number_of_guests": 2 ** 63}, "Number of guests must be at most 2147483647"),
    ({"number_of_guests": True}, "number_of_guests"),
    ({"number_of_guests": "2"}, "number_of_guests"),
])
def test_invalid_submissions_are_rejected(client, overrides, message):
    response = client.post("/api/rsvp", json=sample_rsvp(**overrides))

    assert response.status_code == 400
    assert response.json()["error"].startswith(message)
    assert client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["count"] == 0


def test_missing_field_is_rejected(client):
    payload = sample_rsvp()
    del payload["full_name"]

    response = client.post("/api/rsvp", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "full_name is required"}


def test_storage_failure_returns_500(app, client):
    async def broken_insert(record):
        raise ReferralCodeExhaustedError(10)

    app.state.store.insert = broken_insert
    response = client.post("/api/rsvp", json=sample_rsvp())

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process RSVP. Please try again."}


def test_confirmation_email_sent_after_submit(app, outbox):
    with TestClient(app) as client:
        app.state.notifier.transports = [outbox]
        created = submit(client)

    assert len(outbox.sent) == 1
    assert outbox.sent[0]["To"] == "jane@example.com"
    text_part = outbox.sent[0].get_payload()[0].get_payload(decode=True).decode("utf-8")
    assert created["referral_id"] in text_part


def test_email_failure_does_not_fail_submission(app):
    with TestClient(app) as client:
        app.state.notifier.transports = [FailingTransport()]
        response = client.post("/api/rsvp", json=sample_rsvp())

        assert response.status_code == 201
        assert client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["count"] == 1


def test_calendar_download(client):
    response = client.get("/api/calendar")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/calendar")
    assert "kdsp-annual-gala-2025.ics" in response.headers["content-disposition"]
    assert "BEGIN:VEVENT" in response.text
    assert response.text.count("BEGIN:VALARM") == 2


# --- Admin authentication ---
@pytest.mark.parametrize("path", [
    "/api/admin/rsvps",
    "/api/admin/stats",
    "/api/admin/donation-stats",
    "/api/admin/export",
    "/api/admin/export-donations",
])
def test_admin_requires_credentials(client, path):
    assert client.get(path).json() == UNAUTHORIZED
    response = client.get(path, headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401
    assert response.json() == UNAUTHORIZED


def test_admin_credential_forms(client):
    assert client.get("/api/admin/stats", headers={"Authorization": f"Bearer {ADMIN_PASSWORD}"}).status_code == 200
    assert client.get("/api/admin/stats", headers={"Authorization": ADMIN_PASSWORD}).status_code == 200
    assert client.get("/api/admin/stats", params={"password": ADMIN_PASSWORD}).status_code == 200
    assert client.get("/api/admin/stats", params={"password": "nope"}).status_code == 401


def test_delete_requires_credentials(client):
    created = submit(client)
    response = client.request("DELETE", "/api/admin/delete", json={"ids": [created["id"]]})

    assert response.status_code == 401
    assert client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["count"] == 1


# --- Admin operations ---
def test_listing_sort_options(client):
    for name in ("Charlie", "alice", "Bob"):
        submit(client, full_name=name, email=f"{name.lower()}@example.com")

    def names(**params):
        response = client.get("/api/admin/rsvps", headers=ADMIN_HEADERS, params=params)
        return [record["full_name"] for record in response.json()["data"]]

    assert names() == ["Bob", "alice", "Charlie"]
    assert names(sortBy="created_at", order="asc") == ["Charlie", "alice", "Bob"]
    assert names(sortBy="full_name", order="asc") == ["Bob", "Charlie", "alice"]
    assert names(sortBy="message", order="asc") == ["Charlie", "alice", "Bob"]


def test_delete(client):
    ids = [submit(client, email=f"guest{i}@example.com")["id"] for i in range(3)]

    response = client.request("DELETE", "/api/admin/delete", headers=ADMIN_HEADERS, json={"ids": [ids[0], 999]})
    assert response.status_code == 200
    assert response.json() == {"success": True, "deletedCount": 1, "message": "Successfully deleted 1 RSVP"}

    response = client.request("DELETE", "/api/admin/delete", headers=ADMIN_HEADERS, json={"ids": ids[1:]})
    assert response.json()["message"] == "Successfully deleted 2 RSVPs"
    assert client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["count"] == 0


@pytest.mark.parametrize("payload", [{"ids": []}, {}, None])
def test_delete_without_ids(client, payload):
    submit(client)
    response = client.request("DELETE", "/api/admin/delete", headers=ADMIN_HEADERS, json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request. Must provide an array of IDs"}
    assert client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["count"] == 1


def test_export(client):
    submit(client, message='Hello, "world"')
    response = client.get("/api/admin/export", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "kdsp-rsvps-" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][0] == "ID"
    assert rows[1][1] == "Jane Doe"
    assert rows[1][6] == 'Hello, "world"'


def test_donation_stats_and_export(client):
    submit(client, donation_intent=["individual", "company"], donation_value=250)
    submit(client, email="b@example.com", donation_intent=["volunteer"], donation_custom=75.5)
    submit(client, email="c@example.com")

    stats = client.get("/api/admin/donation-stats", headers=ADMIN_HEADERS).json()["data"]

    assert stats["totalGuestsWithIntent"] == 2
    assert stats["totalEstimatedValue"] == 326
    assert [s["intentType"] for s in stats["allIntentStats"]] == [
        "Individual", "Corporate", "Awareness", "Volunteer", "Learn More"
    ]
    assert stats["intentStats"] == [
        {"intentType": "Individual", "count": 1, "estimatedValue": 125},
        {"intentType": "Corporate", "count": 1, "estimatedValue": 125},
        {"intentType": "Volunteer", "count": 1, "estimatedValue": 76},
    ]

    response = client.get("/api/admin/export-donations", headers=ADMIN_HEADERS)
    rows = list(csv.reader(io.StringIO(response.text)))
    assert "kdsp-donation-data-" in response.headers["content-disposition"]
    assert len(rows) == 3


def test_send_test_email(client, outbox):
    response = client.post("/api/admin/test-email", headers=ADMIN_HEADERS, json={"to": "ops@example.com"})

    assert response.json() == {"success": True, "message": "Test email sent successfully!"}
    assert outbox.sent[0]["To"] == "ops@example.com"


# --- Startup ---
def test_startup_requires_admin_password(database_url):
    settings = make_settings(database_url, ADMIN_PASSWORD="  ")

    with pytest.raises(ConfigurationError):
        validate_settings(settings)

    with pytest.raises(ConfigurationError):
        with TestClient(create_app(settings, configure_logging=False)):
            pass


def test_unsupported_database_url_is_rejected():
    with pytest.raises(ConfigurationError):
        validate_settings(make_settings("mysql://localhost/rsvp"))


def test_submit_list_delete_scenario(client):
    created = submit(client, email="jane@x.com")

    data = client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["data"]
    assert [(r["full_name"], r["number_of_guests"]) for r in data] == [("Jane Doe", 2)]

    def delete():
        return client.request("DELETE", "/api/admin/delete", headers=ADMIN_HEADERS, json={"ids": [created["id"]]})

    assert delete().json()["deletedCount"] == 1
    assert delete().json()["deletedCount"] == 0


@pytest.mark.parametrize("field", ["donation_value", "donation_custom"])
def test_non_finite_donation_is_rejected(client, field):
    """An overflowing JSON number must not reach the store"""
    body = '{"full_name": "Jane Doe", "email": "jane@example.com", "number_of_guests": 2, ' \
           '"rsvp_status": "Yes", "referral_source": "Friend", "donation_intent": ["individual"], ' \
           f'"{field}": 1e400}}'

    response = client.post("/api/rsvp", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["error"].startswith(field)
    assert client.get("/api/admin/donation-stats", headers=ADMIN_HEADERS).status_code == 200
    assert client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["count"] == 0


@pytest.mark.parametrize("body", ["{not json", '{"ids": ["x"]}', '{"ids": [1]}'])
def test_delete_without_credentials_is_unauthorized_whatever_the_body(client, body):
    submit(client)
    response = client.request(
        "DELETE", "/api/admin/delete", content=body, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 401
    assert response.json() == UNAUTHORIZED
    assert client.get("/api/admin/rsvps", headers=ADMIN_HEADERS).json()["count"] == 1


def test_delete_with_malformed_body(client):
    response = client.request(
        "DELETE", "/api/admin/delete", headers={**ADMIN_HEADERS, "Content-Type": "application/json"},
        content="{not json",
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request. Must provide an array of IDs"}


def test_test_email_without_credentials_is_unauthorized(client, outbox):
    response = client.post("/api/admin/test-email", content="{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 401
    assert outbox.sent == []


@pytest.mark.parametrize("recipient", ["not-an-email", "ops@example.com\r\nBcc: all@example.com"])
def test_test_email_rejects_invalid_recipient(client, outbox, recipient):
    response = client.post("/api/admin/test-email", headers=ADMIN_HEADERS, json={"to": recipient})

    assert response.status_code == 400
    assert response.json() == {"error": "Valid email is required"}
    assert outbox.sent == []


def test_test_email_defaults_to_sender_address(client, outbox, settings):
    response = client.post("/api/admin/test-email", headers=ADMIN_HEADERS)

    assert response.json()["success"] is True
    assert outbox.sent[0]["To"] == settings.EMAIL_FROM


def test_test_email_reports_crashing_transport(app, client):
    class BrokenTransport:
        name = "broken"

        async def send(self, message):
            raise RuntimeError("bug in transport")

    app.state.notifier.transports = [BrokenTransport()]
    response = client.post("/api/admin/test-email", headers=ADMIN_HEADERS, json={"to": "ops@example.com"})

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Failed to send test email"}
