"""
HTTP surface tests: status codes, envelopes and authorization.
"""
import pytest


BASE = "/api/v1"


def _sign_in(api, user_code="12345"):
    resp = api.post(f"{BASE}/time-sessions/sign-in", json={"user_code": user_code})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/time-sessions/open"),
            ("GET", "/time-sessions/summary"),
            ("GET", "/time-sessions/events"),
            ("POST", "/time-sessions/sign-in"),
            ("GET", "/console/settings"),
            ("GET", "/maintenance/stale-open-sessions"),
            ("GET", "/maintenance/summary-mismatches"),
        ],
    )
    def test_requires_auth(self, anonymous_client, method, path):
        resp = anonymous_client.request(method, f"{BASE}{path}")
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"


# =============================================================================
# TIME SESSIONS
# =============================================================================


class TestTimeSessionEndpoints:

    def test_sign_in_envelope(self, api):
        resp = api.post(f"{BASE}/time-sessions/sign-in", json={"user_code": "12345"})

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["ts_user_code"] == "12345"
        assert body["data"]["ts_check_out_at"] is None

    def test_sign_in_conflict(self, api):
        _sign_in(api)

        resp = api.post(f"{BASE}/time-sessions/sign-in", json={"user_code": "12345"})

        assert resp.status_code == 409
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "This user already has an active session."
        assert body["details"]["category"] == "conflict"

    def test_sign_in_invalid_code(self, api):
        resp = api.post(f"{BASE}/time-sessions/sign-in", json={"user_code": "abcde"})

        assert resp.status_code == 400
        assert resp.json()["details"]["category"] == "invalid_input"

    def test_sign_in_forbidden_for_member(self, api, member):
        api.act_as(member)

        resp = api.post(f"{BASE}/time-sessions/sign-in", json={"user_code": "12345"})

        assert resp.status_code == 403
        assert resp.json()["details"]["category"] == "access_denied"

    def test_sign_out(self, api):
        session = _sign_in(api)

        resp = api.post(f"{BASE}/time-sessions/{session['ts_id']}/sign-out")

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"].startswith("User signed out. Total time:")
        assert body["data"]["session"]["ts_check_out_at"] is not None
        assert body["data"]["session"]["ts_is_flagged"] is False

    def test_sign_out_unknown(self, api):
        resp = api.post(f"{BASE}/time-sessions/{'0' * 32}/sign-out")
        assert resp.status_code == 404

    def test_manual_add(self, api):
        resp = api.post(f"{BASE}/time-sessions/manual", json={"user_code": "12345", "hours": 3})

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["ts_total_hours"] == 3.0
        assert data["ts_admin_notes"] == "Manually added by admin"
        assert data["ts_check_in_at"] == data["ts_check_out_at"]

    def test_manual_add_negative_hours(self, api):
        resp = api.post(f"{BASE}/time-sessions/manual", json={"user_code": "12345", "hours": -2})

        assert resp.status_code == 400
        assert resp.json()["message"] == "Please enter a valid number of hours."

    def test_manual_add_non_numeric_hours(self, api):
        resp = api.post(f"{BASE}/time-sessions/manual", json={"user_code": "12345", "hours": "lots"})
        assert resp.status_code == 422

    def test_adjust_hours(self, api, admin):
        session = api.post(
            f"{BASE}/time-sessions/manual", json={"user_code": "12345", "hours": 2}
        ).json()["data"]

        resp = api.patch(f"{BASE}/time-sessions/{session['ts_id']}/hours", json={"hours": 4.5})

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["ts_total_hours"] == 4.5
        assert data["ts_admin_notes"] == f"Adjusted from 2.00h to 4.50h by {admin.code}"

    def test_delete_requires_confirmation(self, api):
        session = _sign_in(api)

        resp = api.delete(f"{BASE}/time-sessions/{session['ts_id']}")
        assert resp.status_code == 400

        resp = api.delete(f"{BASE}/time-sessions/{session['ts_id']}", params={"confirm": "true"})
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        resp = api.delete(f"{BASE}/time-sessions/{session['ts_id']}", params={"confirm": "true"})
        assert resp.status_code == 404

    def test_open_sessions(self, api):
        _sign_in(api, "11111")
        _sign_in(api, "22222")

        resp = api.get(f"{BASE}/time-sessions/open")

        assert resp.status_code == 200
        assert {s["ts_user_code"] for s in resp.json()["data"]} == {"11111", "22222"}

    def test_summary_open_to_members(self, api, member):
        api.post(f"{BASE}/time-sessions/manual", json={"user_code": "12345", "hours": 2})
        api.act_as(member)

        resp = api.get(f"{BASE}/time-sessions/summary")

        assert resp.status_code == 200
        rows = resp.json()["data"]
        assert rows[0]["user_code"] == "12345"
        assert rows[0]["total_hours"] == 2.0

    def test_user_history_pagination(self, api):
        for _ in range(3):
            api.post(f"{BASE}/time-sessions/manual", json={"user_code": "12345", "hours": 1})

        resp = api.get(f"{BASE}/time-sessions/users/12345", params={"limit": 2, "offset": 0})

        assert resp.status_code == 200
        body = resp.json()
        assert len(body["data"]) == 2
        assert body["total"] == 3
        assert body["page"] == 1
        assert body["pages"] == 2

    def test_member_cannot_read_other_history(self, api, member):
        api.act_as(member)

        assert api.get(f"{BASE}/time-sessions/users/12345").status_code == 403
        assert api.get(f"{BASE}/time-sessions/users/{member.code}").status_code == 200

    def test_events(self, api):
        session = _sign_in(api)
        api.post(f"{BASE}/time-sessions/{session['ts_id']}/sign-out")

        resp = api.get(f"{BASE}/time-sessions/events", params={"session_id": session["ts_id"]})

        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 2
        assert {e["tse_event_type"] for e in body["data"]} == {"sign_in", "sign_out"}

    def test_events_rejects_unknown_type(self, api):
        resp = api.get(f"{BASE}/time-sessions/events", params={"event_type": "teleport"})
        assert resp.status_code == 422


# =============================================================================
# CONSOLE
# =============================================================================


class TestConsoleEndpoints:

    def test_lock_then_read_then_unlock(self, api):
        locked = api.post(f"{BASE}/console/kiosk/lock").json()["data"]
        headers = {"X-Console-Token": locked["token"]}

        settings = api.get(f"{BASE}/console/settings", headers=headers).json()["data"]
        assert settings["kiosk_locked"] is True

        resp = api.post(f"{BASE}/console/kiosk/unlock", json={"exit_code": "10101"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["settings"]["kiosk_locked"] is False

    def test_unlock_wrong_code(self, api):
        locked = api.post(f"{BASE}/console/kiosk/lock").json()["data"]

        resp = api.post(
            f"{BASE}/console/kiosk/unlock",
            json={"exit_code": "99999"},
            headers={"X-Console-Token": locked["token"]},
        )

        assert resp.status_code == 403
        assert resp.json()["message"] == "Invalid permanent admin code."

    def test_reveal_requires_root(self, api, root):
        assert api.post(f"{BASE}/console/ids/reveal").status_code == 403

        api.act_as(root)
        resp = api.post(f"{BASE}/console/ids/reveal")
        assert resp.status_code == 200
        assert resp.json()["data"]["settings"]["show_ids"] is True

    def test_hide_open_to_members(self, api, member):
        api.act_as(member)
        resp = api.post(f"{BASE}/console/ids/hide")
        assert resp.status_code == 200
        assert resp.json()["data"]["settings"]["show_ids"] is False

    def test_settings_invalid_token(self, api):
        resp = api.get(f"{BASE}/console/settings", headers={"X-Console-Token": "bogus"})
        assert resp.status_code == 400


# =============================================================================
# MAINTENANCE
# =============================================================================


class TestMaintenanceEndpoints:

    def test_reports(self, api):
        _sign_in(api)

        duplicates = api.get(f"{BASE}/maintenance/duplicate-open-sessions")
        stale = api.get(f"{BASE}/maintenance/stale-open-sessions")

        assert duplicates.status_code == 200
        assert duplicates.json()["data"] == []
        assert stale.status_code == 200
        assert stale.json()["data"] == []

    def test_stale_with_zero_threshold(self, api):
        session = _sign_in(api)

        resp = api.get(f"{BASE}/maintenance/stale-open-sessions", params={"threshold_hours": 0})

        assert [s["ts_id"] for s in resp.json()["data"]] == [session["ts_id"]]

    def test_reports_forbidden_for_member(self, api, member):
        api.act_as(member)
        assert api.get(f"{BASE}/maintenance/duplicate-open-sessions").status_code == 403

    def test_summary_mismatches(self, api, member):
        session = _sign_in(api)
        api.post(f"{BASE}/time-sessions/{session['ts_id']}/sign-out")
        api.post(f"{BASE}/time-sessions/manual", json={"user_code": "22222", "hours": 1.5})

        resp = api.get(f"{BASE}/maintenance/summary-mismatches")

        assert resp.status_code == 200
        assert resp.json()["data"] == []

        api.act_as(member)
        assert api.get(f"{BASE}/maintenance/summary-mismatches").status_code == 403
