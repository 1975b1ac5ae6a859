"""
LegalTendr Backend — API Integration Tests
============================================

What:  End-to-end flows through the HTTP layer.
How:   HTTPX AsyncClient over ASGITransport; the app's database dependency
       points at the per-test in-memory SQLite database.

Coverage:
    ✅ Health check (healthy and database down)
    ✅ Register / login / me / logout, cookie and bearer token
    ✅ Role checks (lawyers cannot swipe, clients cannot create specialties)
    ✅ Deck → swipe → match → conversation → messages → read receipts
    ✅ Undo and reset
    ✅ Cases: create, list, hire, matching lawyers, share
    ✅ Profile edit, picture upload and serving
    ✅ Error envelope with request_id, X-Request-ID header
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import PNG_BYTES, auth_header, register_via_api
from legaltendr.config import settings


async def _client_and_lawyer(test_client, **lawyer_fields):
    client = await register_via_api(test_client, "client")
    lawyer = await register_via_api(
        test_client, "lawyer", hourly_rate=150, specialties=["s6"], **lawyer_fields
    )
    return client, lawyer


# ══════════════════════════════════════════════════════════════════════════
# Health and Error Envelope
# ══════════════════════════════════════════════════════════════════════════

class TestHealthAndEnvelope:

    @pytest.mark.asyncio
    async def test_health_ok(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["version"]

    @pytest.mark.asyncio
    async def test_health_database_down(self, test_client):
        failing_ping = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("refused")))
        with patch("legaltendr.routes.health.ping_database", failing_ping):
            response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        user = await register_via_api(test_client)

        response = await test_client.get(
            "/api/lawyers/ghost",
            headers={**auth_header(user["token"]), "X-Request-ID": "trace-42"},
        )

        assert response.status_code == 404
        assert response.headers["X-Request-ID"] == "trace-42"
        body = response.json()
        assert body["error"] == "not_found"
        assert body["request_id"] == "trace-42"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/api/specialties")
        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 8


# ══════════════════════════════════════════════════════════════════════════
# Auth
# ══════════════════════════════════════════════════════════════════════════

class TestAuthFlow:

    @pytest.mark.asyncio
    async def test_register_sets_cookie_and_returns_profile(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={
                "email": "Maria.Cruz@Example.com",
                "password": "secret123",
                "user_type": "lawyer",
                "first_name": "maria",
                "last_name": "dela cruz",
                "hourly_rate": 120,
                "specialties": ["s1", "s3"],
            },
        )

        assert response.status_code == 201
        assert settings.session_cookie_name in response.cookies
        user = response.json()["user"]
        assert user["email"] == "maria.cruz@example.com"
        assert user["first_name"] == "Maria"
        assert user["last_name"] == "Dela Cruz"
        assert user["profile_type"] == "lawyer"
        assert {s["specialty_id"] for s in user["specialties"]} == {"s1", "s3"}
        assert "password" not in user

    @pytest.mark.asyncio
    async def test_duplicate_email(self, test_client):
        payload = {
            "email": "dup@example.com",
            "password": "secret123",
            "user_type": "client",
            "first_name": "A",
            "last_name": "B",
        }
        assert (await test_client.post("/api/auth/register", json=payload)).status_code == 201
        response = await test_client.post("/api/auth/register", json=payload)
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_login_me_logout(self, test_client):
        registered = await register_via_api(test_client, email="login@example.com")
        test_client.cookies.clear()

        login = await test_client.post(
            "/api/auth/login", json={"email": "LOGIN@example.com", "password": "secret123"}
        )
        assert login.status_code == 200
        token = login.json()["token"]
        assert token != registered["token"]

        me = await test_client.get("/api/auth/me", headers=auth_header(token))
        assert me.status_code == 200
        assert me.json()["user_id"] == registered["user"]["user_id"]

        logout = await test_client.post("/api/auth/logout", headers=auth_header(token))
        assert logout.status_code == 200
        test_client.cookies.clear()

        after = await test_client.get("/api/auth/me", headers=auth_header(token))
        assert after.status_code == 401
        assert after.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client):
        await register_via_api(test_client, email="wrongpw@example.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "wrongpw@example.com", "password": "nope"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_protected_route_without_token(self, test_client):
        test_client.cookies.clear()
        response = await test_client.get("/api/conversations")
        assert response.status_code == 401
        assert response.json()["error"] == "authentication_required"

    @pytest.mark.asyncio
    async def test_admin_registration_requires_key(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={
                "email": "admin@example.com",
                "password": "secret123",
                "user_type": "admin",
                "first_name": "Ad",
                "last_name": "Min",
                "admin_key": "guess",
            },
        )
        assert response.status_code == 403


# ══════════════════════════════════════════════════════════════════════════
# Catalog
# ══════════════════════════════════════════════════════════════════════════

class TestCatalog:

    @pytest.mark.asyncio
    async def test_specialties_are_public_and_sorted(self, test_client):
        test_client.cookies.clear()
        response = await test_client.get("/api/specialties")

        assert response.status_code == 200
        names = [s["name"] for s in response.json()]
        assert names == sorted(names)
        assert len(names) == 8

    @pytest.mark.asyncio
    async def test_only_admins_create_specialties(self, test_client):
        client = await register_via_api(test_client)
        admin = await register_via_api(test_client, "admin", admin_key=settings.admin_signup_key)
        payload = {"name": "Maritime Law", "description": "Shipping and seafarers"}

        denied = await test_client.post(
            "/api/specialties", json=payload, headers=auth_header(client["token"])
        )
        created = await test_client.post(
            "/api/specialties", json=payload, headers=auth_header(admin["token"])
        )
        duplicate = await test_client.post(
            "/api/specialties", json={"name": "maritime law"}, headers=auth_header(admin["token"])
        )

        assert denied.status_code == 403
        assert created.status_code == 201
        assert created.json()["specialty_id"] == "s9"
        assert duplicate.status_code == 409

    @pytest.mark.asyncio
    async def test_admin_loads_geo_codes(self, test_client):
        client = await register_via_api(test_client)
        admin = await register_via_api(test_client, "admin", admin_key=settings.admin_signup_key)
        rows = [
            {"id": "072200000", "name": "Cebu", "geo_level": "Prov"},
            {"id": "072230000", "name": "Argao", "geo_level": "Mun"},
        ]

        denied = await test_client.put(
            "/api/geo/codes", json=rows, headers=auth_header(client["token"])
        )
        loaded = await test_client.put(
            "/api/geo/codes", json=rows, headers=auth_header(admin["token"])
        )
        reloaded = await test_client.put(
            "/api/geo/codes", json=rows, headers=auth_header(admin["token"])
        )

        assert denied.status_code == 403
        assert loaded.json() == {"created": 2, "updated": 0}
        assert reloaded.json() == {"created": 0, "updated": 2}

        test_client.cookies.clear()
        provinces = await test_client.get("/api/geo/provinces")
        cities = await test_client.get("/api/geo/provinces/072200000/cities")
        assert [p["name"] for p in provinces.json()] == ["Cebu"]
        assert [c["name"] for c in cities.json()] == ["Argao"]


# ══════════════════════════════════════════════════════════════════════════
# Swipe → Match → Conversation
# ══════════════════════════════════════════════════════════════════════════

class TestSwipeToConversation:

    @pytest.mark.asyncio
    async def test_full_match_flow(self, test_client):
        client, lawyer = await _client_and_lawyer(test_client)
        client_auth = auth_header(client["token"])
        lawyer_auth = auth_header(lawyer["token"])
        lawyer_id = lawyer["user"]["user_id"]

        deck = await test_client.get("/api/swipes/deck", headers=client_auth)
        assert deck.status_code == 200
        assert deck.json()["has_swiped"] is False
        assert [p["lawyer_id"] for p in deck.json()["lawyers"]] == [lawyer_id]

        swipe = await test_client.post(
            "/api/swipes", json={"lawyer_id": lawyer_id, "direction": "right"}, headers=client_auth
        )
        assert swipe.status_code == 201
        result = swipe.json()
        assert result["swipe"]["matched"] is True
        conversation_id = result["match"]["conversation_id"]

        again = await test_client.post(
            "/api/swipes", json={"lawyer_id": lawyer_id, "direction": "left"}, headers=client_auth
        )
        assert again.status_code == 409

        deck = await test_client.get("/api/swipes/deck", headers=client_auth)
        assert deck.json() == {"lawyers": [], "has_swiped": True}

        # Both sides see the match
        for headers in (client_auth, lawyer_auth):
            matches = await test_client.get("/api/matches", headers=headers)
            assert [m["lawyer_id"] for m in matches.json()] == [lawyer_id]

        profile = await test_client.get(f"/api/lawyers/{lawyer_id}", headers=client_auth)
        assert profile.json()["matches_count"] == 1

        sent = await test_client.post(
            f"/api/conversations/{conversation_id}/messages",
            json={"content": "Good morning, attorney"},
            headers=client_auth,
        )
        assert sent.status_code == 201

        inbox = await test_client.get("/api/conversations", headers=lawyer_auth)
        assert inbox.json()[0]["unread_count"] == 1
        assert inbox.json()[0]["latest_message"]["content"] == "Good morning, attorney"

        messages = await test_client.get(
            f"/api/conversations/{conversation_id}/messages", headers=lawyer_auth
        )
        read = await test_client.post(
            "/api/messages/read",
            json={"message_ids": [m["message_id"] for m in messages.json()]},
            headers=lawyer_auth,
        )
        assert read.json() == {"count": 1}

        thread = await test_client.get(f"/api/conversations/{conversation_id}", headers=lawyer_auth)
        assert thread.json()["unread_count"] == 0

    @pytest.mark.asyncio
    async def test_lawyers_cannot_swipe(self, test_client):
        _, lawyer = await _client_and_lawyer(test_client)
        other = await register_via_api(test_client, "lawyer")

        response = await test_client.post(
            "/api/swipes",
            json={"lawyer_id": other["user"]["user_id"], "direction": "right"},
            headers=auth_header(lawyer["token"]),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "permission_denied"

    @pytest.mark.asyncio
    async def test_invalid_direction(self, test_client):
        client, lawyer = await _client_and_lawyer(test_client)
        response = await test_client.post(
            "/api/swipes",
            json={"lawyer_id": lawyer["user"]["user_id"], "direction": "up"},
            headers=auth_header(client["token"]),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_undo_and_reset(self, test_client):
        client, lawyer = await _client_and_lawyer(test_client)
        second = await register_via_api(test_client, "lawyer")
        client_auth = auth_header(client["token"])

        await test_client.post(
            "/api/swipes",
            json={"lawyer_id": lawyer["user"]["user_id"], "direction": "left"},
            headers=client_auth,
        )
        await test_client.post(
            "/api/swipes",
            json={"lawyer_id": second["user"]["user_id"], "direction": "right"},
            headers=client_auth,
        )

        undo = await test_client.post("/api/swipes/undo", headers=client_auth)
        assert undo.status_code == 200
        assert undo.json()["swipe"]["lawyer_id"] == second["user"]["user_id"]
        assert undo.json()["conversation_deleted"] is True

        reset = await test_client.post("/api/swipes/reset", headers=client_auth)
        assert reset.json() == {"count": 1}

        history = await test_client.get("/api/swipes", headers=client_auth)
        assert history.json() == []

        nothing = await test_client.post("/api/swipes/undo", headers=client_auth)
        assert nothing.status_code == 404

    @pytest.mark.asyncio
    async def test_outsider_gets_404_on_conversation(self, test_client):
        client, lawyer = await _client_and_lawyer(test_client)
        outsider = await register_via_api(test_client)

        started = await test_client.post(
            "/api/conversations",
            json={"lawyer_id": lawyer["user"]["user_id"], "initial_message": "Hello"},
            headers=auth_header(client["token"]),
        )
        assert started.status_code == 201
        conversation_id = started.json()["conversation"]["conversation_id"]

        response = await test_client.get(
            f"/api/conversations/{conversation_id}/messages",
            headers=auth_header(outsider["token"]),
        )
        assert response.status_code == 404


# ══════════════════════════════════════════════════════════════════════════
# Discovery and Cases
# ══════════════════════════════════════════════════════════════════════════

class TestDiscoveryAndCases:

    @pytest.mark.asyncio
    async def test_lawyer_filters(self, test_client):
        client, _ = await _client_and_lawyer(test_client)
        await register_via_api(test_client, "lawyer", hourly_rate=400, specialties=["s5"])
        client_auth = auth_header(client["token"])

        by_specialty = await test_client.get(
            "/api/lawyers", params={"specialties": ["s5", "s8"]}, headers=client_auth
        )
        cheap = await test_client.get("/api/lawyers", params={"max_rate": 150}, headers=client_auth)
        inverted = await test_client.get(
            "/api/lawyers", params={"min_rate": 500, "max_rate": 100}, headers=client_auth
        )

        assert by_specialty.headers["X-Total-Count"] == "1"
        assert by_specialty.json()[0]["hourly_rate"] == 400
        assert [p["hourly_rate"] for p in cheap.json()] == [150]
        assert inverted.status_code == 400

    @pytest.mark.asyncio
    async def test_case_lifecycle(self, test_client):
        client, lawyer = await _client_and_lawyer(test_client)
        client_auth = auth_header(client["token"])
        lawyer_auth = auth_header(lawyer["token"])
        lawyer_id = lawyer["user"]["user_id"]

        created = await test_client.post(
            "/api/cases",
            json={
                "title": "Illegal dismissal",
                "description": "Terminated without notice",
                "specialties": ["s6"],
            },
            headers=client_auth,
        )
        assert created.status_code == 201
        case_id = created.json()["case_id"]
        assert created.json()["status"] == "open"

        matching = await test_client.get(f"/api/cases/{case_id}/lawyers", headers=client_auth)
        assert [p["lawyer_id"] for p in matching.json()] == [lawyer_id]

        deck = await test_client.get(
            "/api/swipes/deck", params={"case_id": case_id}, headers=client_auth
        )
        assert [p["lawyer_id"] for p in deck.json()["lawyers"]] == [lawyer_id]

        # Not hired yet: invisible to the lawyer
        assert (await test_client.get(f"/api/cases/{case_id}", headers=lawyer_auth)).status_code == 404

        hired = await test_client.patch(
            f"/api/cases/{case_id}", json={"hired_lawyer_id": lawyer_id}, headers=client_auth
        )
        assert hired.json()["status"] == "in_progress"

        lawyer_cases = await test_client.get("/api/cases", headers=lawyer_auth)
        assert [c["case_id"] for c in lawyer_cases.json()] == [case_id]

        open_cases = await test_client.get(
            "/api/cases", params={"status": "open"}, headers=client_auth
        )
        assert open_cases.json() == []

        started = await test_client.post(
            "/api/conversations",
            json={"lawyer_id": lawyer_id, "initial_message": "Hi"},
            headers=client_auth,
        )
        shared = await test_client.post(
            f"/api/cases/{case_id}/share",
            json={"conversation_id": started.json()["conversation"]["conversation_id"]},
            headers=client_auth,
        )
        assert shared.status_code == 201
        assert "Illegal dismissal" in shared.json()["content"]

    @pytest.mark.asyncio
    async def test_lawyers_cannot_create_cases(self, test_client):
        lawyer = await register_via_api(test_client, "lawyer")
        response = await test_client.post(
            "/api/cases",
            json={"title": "Mine", "description": "Mine too"},
            headers=auth_header(lawyer["token"]),
        )
        assert response.status_code == 403


# ══════════════════════════════════════════════════════════════════════════
# Profile and Files
# ══════════════════════════════════════════════════════════════════════════

class TestProfileAndFiles:

    @pytest.mark.asyncio
    async def test_update_profile(self, test_client):
        lawyer = await register_via_api(test_client, "lawyer", specialties=["s1"])
        response = await test_client.patch(
            "/api/profile",
            json={"bio": "Twenty years in family court", "specialties": ["s1", "s4"]},
            headers=auth_header(lawyer["token"]),
        )

        assert response.status_code == 200
        assert response.json()["bio"] == "Twenty years in family court"
        assert {s["specialty_id"] for s in response.json()["specialties"]} == {"s1", "s4"}

    @pytest.mark.asyncio
    async def test_upload_and_serve_picture(self, test_client):
        user = await register_via_api(test_client)
        headers = auth_header(user["token"])

        upload = await test_client.post(
            "/api/profile/picture",
            files={"file": ("me.png", PNG_BYTES, "image/png")},
            headers=headers,
        )
        assert upload.status_code == 200
        url = upload.json()["profile_picture_url"]
        assert url.startswith("/api/files/avatars/")

        served = await test_client.get(url)
        assert served.status_code == 200
        assert served.content == PNG_BYTES
        assert "max-age" in served.headers["Cache-Control"]

    @pytest.mark.asyncio
    async def test_upload_just_under_size_limit(self, test_client):
        user = await register_via_api(test_client)
        # Multipart overhead pushes the request itself past max_file_size
        near_limit = PNG_BYTES + b"\0" * (settings.max_file_size - 10 - len(PNG_BYTES))

        response = await test_client.post(
            "/api/profile/picture",
            files={"file": ("big.png", near_limit, "image/png")},
            headers=auth_header(user["token"]),
        )
        assert response.status_code == 200, response.text

    @pytest.mark.asyncio
    async def test_upload_over_size_limit(self, test_client):
        user = await register_via_api(test_client)
        too_big = PNG_BYTES + b"\0" * settings.max_file_size

        response = await test_client.post(
            "/api/profile/picture",
            files={"file": ("big.png", too_big, "image/png")},
            headers=auth_header(user["token"]),
        )
        assert response.status_code == 400
        assert "exceeds maximum" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_replacing_picture_removes_previous_file(self, test_client):
        user = await register_via_api(test_client)
        headers = auth_header(user["token"])
        files = {"file": ("me.png", PNG_BYTES, "image/png")}

        first = await test_client.post("/api/profile/picture", files=files, headers=headers)
        second = await test_client.post("/api/profile/picture", files=files, headers=headers)

        assert (await test_client.get(first.json()["profile_picture_url"])).status_code == 404
        assert (await test_client.get(second.json()["profile_picture_url"])).status_code == 200

    @pytest.mark.asyncio
    async def test_upload_wrong_type(self, test_client):
        user = await register_via_api(test_client)
        response = await test_client.post(
            "/api/profile/picture",
            files={"file": ("resume.pdf", b"%PDF-1.4 fake", "application/pdf")},
            headers=auth_header(user["token"]),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_missing_file(self, test_client):
        response = await test_client.get("/api/files/avatars/2026/01/01/missing.png")
        assert response.status_code == 404
