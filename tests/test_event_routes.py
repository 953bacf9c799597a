"""Tests for the event blueprint."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from tests.conftest import AppTestCase
from tests.helpers import (
    NOW,
    event_document,
    guest_slot,
    make_team,
    open_slot,
    user_slot,
)


class EventRoutesBase(AppTestCase):
    """Helpers shared by the event blueprint tests."""

    def seed_event(self, event_id: str = "event1", **overrides) -> None:
        self.db.collection("events").document(event_id).set(event_document(**overrides))

    def stored(self, event_id: str = "event1") -> dict:
        return self.db.collection("events").document(event_id).get().to_dict()


class EventRoutesTestCase(EventRoutesBase):
    """Test case for the event blueprint."""

    def test_requires_login(self) -> None:
        response = self.client.get("/events/mine")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["error"], "unauthorized")

    def test_create_event(self) -> None:
        self.login()
        response = self.client.post(
            "/events/",
            json={
                "name": "Saturday Doubles",
                "date": "2030-06-08T12:00:00Z",
                "endTime": "2030-06-08T14:00:00Z",
                "teamSize": 2,
                "maxTeams": 4,
                "visibility": "code",
            },
        )

        self.assertEqual(response.status_code, 201)
        body = response.get_json()
        data = self.stored(body["id"])
        self.assertEqual(data["eventCode"], body["eventCode"])
        self.assertEqual(data["ownerId"], self.user_id)
        self.assertEqual(data["teamSize"], 2)
        self.assertEqual(data["visibility"], "code")
        self.assertEqual(data["date"].isoformat(), "2030-06-08T12:00:00+00:00")

    def test_create_event_rejects_bad_input(self) -> None:
        self.login()
        cases = [
            {"date": "2030-06-08T12:00:00Z", "endTime": "2030-06-08T14:00:00Z"},
            {
                "name": "Backwards",
                "date": "2030-06-08T14:00:00Z",
                "endTime": "2030-06-08T12:00:00Z",
            },
            {
                "name": "Too big",
                "date": "2030-06-08T12:00:00Z",
                "endTime": "2030-06-08T14:00:00Z",
                "teamSize": 12,
            },
            {
                "name": "Hidden",
                "date": "2030-06-08T12:00:00Z",
                "endTime": "2030-06-08T14:00:00Z",
                "visibility": "secret",
            },
        ]
        for payload in cases:
            with self.subTest(payload=payload):
                response = self.client.post("/events/", json=payload)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json()["error"], "validation_error")
        self.assertEqual(list(self.db.collection("events").stream()), [])

    def test_view_event(self) -> None:
        self.seed_event(registrations=[make_team("t1", "a"), make_team("t2", "b")])
        self.login()
        response = self.client.get("/events/event1")

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["event"]["id"], "event1")
        self.assertNotIn("participantIds", body["event"])
        self.assertEqual(body["summary"]["joinedCount"], 2)
        self.assertFalse(body["summary"]["hasCapacity"])
        self.assertEqual(body["summary"]["viewer"]["status"], "none")
        self.assertNotIn("people", body)

    def test_owner_sees_people(self) -> None:
        self.seed_event(ownerId=self.user_id, invitedUserIds=["ghost"])
        self.login()
        body = self.client.get("/events/event1").get_json()
        self.assertTrue(body["summary"]["canManage"])
        self.assertEqual(body["people"]["owner"]["displayName"], "Dana Dinker")
        self.assertEqual(body["people"]["invited"][0]["uid"], "ghost")

    def test_view_missing_event(self) -> None:
        self.login()
        response = self.client.get("/events/missing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "event_not_found")

    def test_private_event_is_hidden(self) -> None:
        self.seed_event(visibility="private")
        self.login()
        response = self.client.get("/events/event1")
        self.assertEqual(response.status_code, 403)

    def test_view_by_code(self) -> None:
        self.seed_event(eventCode="XYZ23")
        self.login()
        response = self.client.get("/events/code/xyz23")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["event"]["eventCode"], "XYZ23")

        response = self.client.get("/events/code/NOPE1")
        self.assertEqual(response.status_code, 404)

    def test_public_events_need_no_login(self) -> None:
        self.seed_event("open")
        self.seed_event("hidden", visibility="private")
        response = self.client.get("/events/public")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [event["id"] for event in response.get_json()["events"]], ["open"]
        )

    def test_my_events(self) -> None:
        self.seed_event("mine", ownerId=self.user_id)
        self.seed_event("asked", invitedUserIds=[self.user_id])
        self.login()
        with patch("nextdink.event.services.utcnow", return_value=NOW):
            body = self.client.get("/events/mine").get_json()
        self.assertEqual([e["event"]["id"] for e in body["schedule"]], ["mine"])
        self.assertEqual(body["inviteCount"], 1)
        self.assertIsInstance(body["schedule"][0]["event"]["date"], str)

    def test_edit_event(self) -> None:
        self.seed_event(ownerId=self.user_id)
        self.login()
        response = self.client.patch(
            "/events/event1", json={"name": "Renamed", "maxTeams": 6}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["event"]["name"], "Renamed")
        self.assertEqual(self.stored()["maxTeams"], 6)

        response = self.client.patch("/events/event1", json={"teamSize": 2})
        self.assertEqual(response.status_code, 400)

    def test_edit_requires_manager(self) -> None:
        self.seed_event()
        self.login()
        response = self.client.patch("/events/event1", json={"name": "Mine"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()["error"], "permission_denied")

    def test_cancel_and_delete(self) -> None:
        self.seed_event(ownerId=self.user_id)
        self.login()
        self.assertEqual(self.client.post("/events/event1/cancel").status_code, 200)
        self.assertEqual(self.stored()["status"], "canceled")

        response = self.client.post("/events/event1/register", json={})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "event_not_active")

        self.assertEqual(self.client.delete("/events/event1").status_code, 200)
        self.assertEqual(self.client.get("/events/event1").status_code, 404)


class RosterRoutesTestCase(EventRoutesBase):
    def test_register_and_leave(self) -> None:
        self.seed_event(teamSize=2)
        self.login()
        response = self.client.post(
            "/events/event1/register",
            json={"members": [None, {"type": "guest", "displayName": "Sam"}]},
        )

        self.assertEqual(response.status_code, 201)
        body = response.get_json()
        self.assertEqual(body["status"], "joined")
        team = self.stored()["registrations"][0]
        self.assertEqual(team["id"], body["teamId"])
        self.assertEqual(
            team["members"],
            [
                {
                    "type": "user",
                    "userId": self.user_id,
                    "displayName": "Dana Dinker",
                    "photoUrl": "https://example.com/dana.png",
                },
                guest_slot("Sam"),
            ],
        )
        self.assertEqual(self.stored()["participantIds"], [self.user_id])

        response = self.client.post("/events/event1/register", json={})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "already_registered")

        self.assertEqual(self.client.post("/events/event1/leave").status_code, 200)
        self.assertEqual(self.stored()["registrations"], [])

        response = self.client.post("/events/event1/leave")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "not_registered")

    def test_register_wrong_team_size(self) -> None:
        self.seed_event(teamSize=2)
        self.login()
        response = self.client.post("/events/event1/register", json={"members": [None]})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "wrong_team_size")

    def test_invite_only(self) -> None:
        self.seed_event(joinType="invite_only")
        self.login()
        response = self.client.post("/events/event1/register")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "invite_required")

    def test_waitlisted_registration(self) -> None:
        self.seed_event(
            maxTeams=1,
            registrations=[make_team("t1", "a")],
            participantIds=["a"],
        )
        self.login()
        response = self.client.post("/events/event1/register")
        self.assertEqual(response.get_json()["status"], "waitlisted")

        summary = self.client.get("/events/event1").get_json()["summary"]
        self.assertEqual(summary["viewer"]["waitlistPosition"], 1)
        self.assertTrue(summary["viewer"]["isCaptain"])

    def test_claim(self) -> None:
        self.seed_event(
            teamSize=2,
            registrations=[make_team("t1", "a", [user_slot("a"), open_slot()])],
            participantIds=["a"],
        )
        self.login()
        response = self.client.post(
            "/events/event1/claim", json={"teamId": "t1", "memberIndex": 1}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["status"], "joined")
        self.assertEqual(self.stored()["participantIds"], ["a", self.user_id])

        response = self.client.post(
            "/events/event1/claim", json={"teamId": "t1", "memberIndex": "1"}
        )
        self.assertEqual(response.status_code, 400)

    def test_claim_taken_slot(self) -> None:
        self.seed_event(
            teamSize=2,
            registrations=[make_team("t1", "a", [user_slot("a"), user_slot("b")])],
        )
        self.login()
        response = self.client.post(
            "/events/event1/claim", json={"teamId": "t1", "memberIndex": 1}
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "slot_not_claimable")

    def test_captain_edits_slot(self) -> None:
        self.seed_event(
            teamSize=2,
            registrations=[
                make_team("t1", self.user_id, [user_slot(self.user_id), open_slot()])
            ],
        )
        self.login()
        response = self.client.put(
            "/events/event1/teams/t1/members/1",
            json={"type": "guest", "displayName": "Lee"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            self.stored()["registrations"][0]["members"][1], guest_slot("Lee")
        )

        response = self.client.put(
            "/events/event1/teams/t1/members/0", json={"type": "open"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "invalid_slot")

    def test_admin_manages_teams(self) -> None:
        self.seed_event(
            teamSize=2,
            adminIds=[self.user_id],
            registrations=[make_team("t1", "a", [user_slot("a"), open_slot()])],
        )
        self.login()
        response = self.client.post(
            "/events/event1/guest-teams", json={"guestNames": ["Sam", "Lee"]}
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(self.stored()["registrations"]), 2)

        self.assertEqual(self.client.delete("/events/event1/teams/t1").status_code, 200)
        response = self.client.delete("/events/event1/teams/t1")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "team_not_found")

    def test_guest_team_requires_names(self) -> None:
        self.seed_event(ownerId=self.user_id)
        self.login()
        response = self.client.post("/events/event1/guest-teams", json={})
        self.assertEqual(response.status_code, 400)

    def test_decline(self) -> None:
        self.seed_event(
            registrations=[make_team("t1", self.user_id)],
            participantIds=[self.user_id],
        )
        self.login()
        self.assertEqual(self.client.post("/events/event1/decline").status_code, 200)
        self.assertEqual(self.stored()["declinedUserIds"], [self.user_id])


class InvitationRoutesTestCase(EventRoutesBase):
    def test_invite_and_uninvite(self) -> None:
        self.seed_event(ownerId=self.user_id)
        self.login()
        response = self.client.post("/events/event1/invitations", json={"userId": "a"})
        self.assertEqual(response.get_json(), {"status": "success", "invited": True})
        response = self.client.post("/events/event1/invitations", json={"userId": "a"})
        self.assertFalse(response.get_json()["invited"])

        response = self.client.delete("/events/event1/invitations/a")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.stored()["invitedUserIds"], [])

    def test_invite_requires_user_id(self) -> None:
        self.seed_event(ownerId=self.user_id)
        self.login()
        response = self.client.post("/events/event1/invitations", json={})
        self.assertEqual(response.status_code, 400)

    def test_invitee_declines(self) -> None:
        self.seed_event(invitedUserIds=[self.user_id])
        self.login()
        response = self.client.post("/events/event1/invitations/decline")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.stored()["declinedUserIds"], [self.user_id])

    def test_invite_from_list(self) -> None:
        self.seed_event(ownerId=self.user_id)
        self.db.collection("lists").document("list1").set(
            {"name": "Regulars", "ownerId": self.user_id, "adminIds": []}
        )
        members = self.db.collection("lists").document("list1").collection("members")
        members.document("a").set({"addedBy": self.user_id})
        members.document("b").set({"addedBy": self.user_id})
        self.login()

        response = self.client.post("/events/event1/invitations/list/list1")

        self.assertEqual(response.get_json()["invited"], ["a", "b"])
        self.assertEqual(self.stored()["invitedUserIds"], ["a", "b"])

    def test_admins(self) -> None:
        self.seed_event(ownerId=self.user_id)
        self.login()
        response = self.client.post("/events/event1/admins", json={"userId": "a"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.stored()["adminIds"], ["a"])
        response = self.client.delete("/events/event1/admins/a")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.stored()["adminIds"], [])

    def test_only_owner_manages_admins(self) -> None:
        self.seed_event(adminIds=[self.user_id])
        self.login()
        response = self.client.post("/events/event1/admins", json={"userId": "a"})
        self.assertEqual(response.status_code, 403)


if __name__ == "__main__":
    unittest.main()
