"""
Easy Note Backend: Auth Verifier Unit Tests (Mocked)
====================================================

What:  Tests for FirebaseAuthVerifier with firebase-admin patched out.
"""

import pytest
from unittest.mock import MagicMock, patch

from firebase_admin import auth

from easynote.exceptions import AuthenticationError
from easynote.services.auth_service import FIREBASE_APP_NAME, FirebaseAuthVerifier, Identity


class TestFirebaseVerify:

    @pytest.mark.asyncio
    async def test_valid_token_maps_identity(self):
        app = MagicMock()
        decoded = {"uid": "abc", "email": "a@b.c", "name": "Ada", "iat": 1}
        with patch("easynote.services.auth_service.auth.verify_id_token", return_value=decoded) as mock_verify:
            verifier = FirebaseAuthVerifier(app=app)
            identity = await verifier.verify("tok")

        assert identity == Identity(uid="abc", email="a@b.c", name="Ada")
        mock_verify.assert_called_once_with("tok", app=app)

    @pytest.mark.asyncio
    async def test_optional_claims_absent(self):
        with patch("easynote.services.auth_service.auth.verify_id_token", return_value={"uid": "anon"}):
            identity = await FirebaseAuthVerifier(app=MagicMock()).verify("tok")

        assert identity.uid == "anon"
        assert identity.email is None
        assert identity.name is None

    @pytest.mark.asyncio
    async def test_invalid_token_raises_authentication_error(self):
        error = auth.InvalidIdTokenError("Token signature invalid")
        with patch("easynote.services.auth_service.auth.verify_id_token", side_effect=error):
            with pytest.raises(AuthenticationError) as exc_info:
                await FirebaseAuthVerifier(app=MagicMock()).verify("forged")

        assert exc_info.value.message == "Invalid or expired token"
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_token_raises_authentication_error(self):
        with patch("easynote.services.auth_service.auth.verify_id_token", side_effect=ValueError("empty")):
            with pytest.raises(AuthenticationError):
                await FirebaseAuthVerifier(app=MagicMock()).verify("x")


class TestFirebaseInitialization:

    def test_reuses_existing_named_app(self):
        existing = MagicMock()
        with patch("easynote.services.auth_service.firebase_admin") as mock_admin:
            mock_admin.get_app.return_value = existing
            verifier = FirebaseAuthVerifier()

        assert verifier.app is existing
        mock_admin.get_app.assert_called_once_with(FIREBASE_APP_NAME)
        mock_admin.initialize_app.assert_not_called()

    def test_service_account_credentials(self):
        with patch("easynote.services.auth_service.firebase_admin") as mock_admin, \
             patch("easynote.services.auth_service.credentials") as mock_credentials, \
             patch("easynote.services.auth_service.settings") as mock_settings:
            mock_admin.get_app.side_effect = ValueError("no app")
            mock_settings.firebase_service_account = {"project_id": "easy-note"}
            mock_settings.firebase_project_id = "easy-note"

            FirebaseAuthVerifier()

        mock_credentials.Certificate.assert_called_once_with({"project_id": "easy-note"})
        mock_admin.initialize_app.assert_called_once_with(
            mock_credentials.Certificate.return_value,
            {"projectId": "easy-note"},
            name=FIREBASE_APP_NAME,
        )

    def test_application_default_credentials_fallback(self):
        with patch("easynote.services.auth_service.firebase_admin") as mock_admin, \
             patch("easynote.services.auth_service.credentials") as mock_credentials, \
             patch("easynote.services.auth_service.settings") as mock_settings:
            mock_admin.get_app.side_effect = ValueError("no app")
            mock_settings.firebase_service_account = None
            mock_settings.firebase_project_id = None

            FirebaseAuthVerifier()

        mock_credentials.ApplicationDefault.assert_called_once_with()
        mock_admin.initialize_app.assert_called_once_with(
            mock_credentials.ApplicationDefault.return_value,
            None,
            name=FIREBASE_APP_NAME,
        )


class TestServiceAccountSettings:

    def test_private_key_newlines_restored(self):
        from easynote.config import Settings

        s = Settings(
            firebase_project_id="p",
            firebase_client_email="svc@p.iam.gserviceaccount.com",
            firebase_private_key="-----BEGIN-----\\nabc\\n-----END-----",
        )
        assert s.firebase_service_account["private_key"] == "-----BEGIN-----\nabc\n-----END-----"

    def test_incomplete_service_account_is_none(self):
        from easynote.config import Settings

        assert Settings(firebase_project_id="p", firebase_client_email=None, firebase_private_key=None).firebase_service_account is None
