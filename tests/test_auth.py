"""Tests for the auth blueprint."""

import unittest

from firebase_admin import auth

from tests.conftest import AppTestCase

MOCK_USER_ID = "new_user"
MOCK_USER_PAYLOAD = {
    "uid": MOCK_USER_ID,
    "email": "casey@example.com",
    "name": "Casey Kitchen",
    "picture": "https://example.com/casey.png",
}


class AuthFirebaseTestCase(AppTestCase):
    def test_session_login_creates_user(self):
        """A verified ID token starts a session and creates the user document."""
        self.mocks["verify_id_token"].return_value = MOCK_USER_PAYLOAD

        response = self.client.post("/auth/session_login", json={"idToken": "token"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"status": "success", "uid": MOCK_USER_ID})
        self.mocks["verify_id_token"].assert_called_once_with("token")
        data = self.db.collection("users").document(MOCK_USER_ID).get().to_dict()
        self.assertEqual(data["displayName"], "Casey Kitchen")
        self.assertEqual(data["displayNameLower"], "casey kitchen")
        self.assertEqual(data["photoUrl"], "https://example.com/casey.png")

        with self.client.session_transaction() as sess:
            self.assertEqual(sess["user_id"], MOCK_USER_ID)
        self.assertEqual(self.client.get("/users/me").status_code, 200)

    def test_session_login_falls_back_to_email(self):
        self.mocks["verify_id_token"].return_value = {
            "uid": MOCK_USER_ID,
            "email": "casey@example.com",
        }
        self.client.post("/auth/session_login", json={"idToken": "token"})
        data = self.db.collection("users").document(MOCK_USER_ID).get().to_dict()
        self.assertEqual(data["displayName"], "casey")

    def test_session_login_keeps_existing_name(self):
        self.mocks["verify_id_token"].return_value = {
            "uid": self.user_id,
            "name": "Provider Name",
        }
        self.client.post("/auth/session_login", json={"idToken": "token"})
        data = self.db.collection("users").document(self.user_id).get().to_dict()
        self.assertEqual(data["displayName"], "Dana Dinker")

    def test_session_login_requires_token(self):
        response = self.client.post("/auth/session_login", json={})
        self.assertEqual(response.status_code, 400)
        self.mocks["verify_id_token"].assert_not_called()

    def test_session_login_rejects_bad_token(self):
        self.mocks["verify_id_token"].side_effect = auth.InvalidIdTokenError(
            "bad token"
        )
        response = self.client.post("/auth/session_login", json={"idToken": "nope"})
        self.assertEqual(response.status_code, 401)
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)

    def test_logout(self):
        self.login()
        self.assertEqual(self.client.get("/users/me").status_code, 200)
        response = self.client.get("/auth/logout")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/users/me").status_code, 401)

    def test_csrf_token(self):
        response = self.client.get("/auth/csrf-token")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()["csrfToken"])


if __name__ == "__main__":
    unittest.main()
