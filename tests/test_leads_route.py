"""
Tests for public lead intake
"""

import pytest

LEAD_URL = "/functions/v1/submit-lead"


@pytest.fixture
def sites(seed_db):
    async def seed(db):
        await db.upsert_site("site-live", "owner-1", published=True)
        await db.upsert_site("site-draft", "owner-1", published=False)

    seed_db(seed)


def lead(**overrides):
    body = {"site_id": "site-live", "name": "Jane Doe", "phone": "555-0100"}
    body.update(overrides)
    return body


class TestSubmitLead:

    def test_blank_optional_fields_stored_as_null(self, client, sites, seed_db):
        response = client.post(LEAD_URL, json=lead(email="   ", message=""))
        stored = seed_db(lambda db: db.get_lead(response.json()["id"]))

        assert stored["email"] is None
        assert stored["message"] is None

    def test_whitespace_name_is_missing(self, client, sites):
        response = client.post(LEAD_URL, json=lead(name="   "))

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields: site_id, name, phone"}

    def test_stores_trimmed_lead(self, client, sites, seed_db):
        response = client.post(LEAD_URL, json=lead(
            name="  Jane Doe ",
            email=" jane@example.com ",
            message=" Leak over the garage ",
        ))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert response.headers["x-ratelimit-remaining"] == "4"

        stored = seed_db(lambda db: db.get_lead(body["id"]))
        assert stored["name"] == "Jane Doe"
        assert stored["email"] == "jane@example.com"
        assert stored["message"] == "Leak over the garage"
        assert stored["source"] == "quote_form"
        assert stored["site_id"] == "site-live"

    def test_custom_source(self, client, sites, seed_db):
        response = client.post(LEAD_URL, json=lead(source="click_to_call"))
        stored = seed_db(lambda db: db.get_lead(response.json()["id"]))
        assert stored["source"] == "click_to_call"

    @pytest.mark.parametrize("missing", ["site_id", "name", "phone"])
    def test_required_fields(self, client, sites, missing):
        body = lead()
        del body[missing]
        response = client.post(LEAD_URL, json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields: site_id, name, phone"}

    @pytest.mark.parametrize("field, value, error", [
        ("name", "x" * 101, "Invalid name"),
        ("phone", "5" * 21, "Invalid phone"),
        ("phone", 5550100, "Invalid phone"),
        ("email", "e" * 256, "Invalid email"),
        ("message", "m" * 1001, "Invalid message"),
        ("message", ["not", "text"], "Invalid message"),
    ])
    def test_field_validation(self, client, sites, field, value, error):
        response = client.post(LEAD_URL, json=lead(**{field: value}))

        assert response.status_code == 400
        assert response.json() == {"error": error}

    def test_limits_are_inclusive(self, client, sites):
        response = client.post(LEAD_URL, json=lead(name="n" * 100, phone="5" * 20, message="m" * 1000))
        assert response.status_code == 200

    @pytest.mark.parametrize("site_id", ["site-draft", "no-such-site"])
    def test_site_must_be_published(self, client, sites, site_id):
        response = client.post(LEAD_URL, json=lead(site_id=site_id))

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid site"}


class TestLeadRateLimit:

    def test_limited_per_client_ip(self, client, sites):
        headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
        for _ in range(5):
            assert client.post(LEAD_URL, json=lead(), headers=headers).status_code == 200

        response = client.post(LEAD_URL, json=lead(), headers=headers)
        assert response.status_code == 429
        assert response.json()["error"] == "Too many requests. Please wait a moment and try again."

        other = client.post(LEAD_URL, json=lead(), headers={"X-Forwarded-For": "198.51.100.2"})
        assert other.status_code == 200

    def test_real_ip_header_used_without_forwarded_for(self, client, sites):
        for _ in range(5):
            client.post(LEAD_URL, json=lead(), headers={"X-Real-IP": "192.0.2.1"})

        assert client.post(LEAD_URL, json=lead(), headers={"X-Real-IP": "192.0.2.1"}).status_code == 429
        assert client.post(LEAD_URL, json=lead(), headers={"CF-Connecting-IP": "192.0.2.9"}).status_code == 200
