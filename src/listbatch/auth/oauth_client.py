"""Credential and API service factory for Google-backed list stores."""

from __future__ import annotations

import logging
import os
from typing import Sequence

from listbatch.errors import AuthError, InvalidArgumentError

from .auth_info import AuthInfo

logger = logging.getLogger(__name__)


class OAuthClient:
    """Create credentials and Google API service objects from AuthInfo."""

    def __init__(self, auth_info: AuthInfo) -> None:
        if not isinstance(auth_info, AuthInfo):
            raise InvalidArgumentError("OAuthClient requires an AuthInfo")
        self._auth_info = auth_info

    def get_credentials(self, scopes: Sequence[str], ensure_valid: bool = True):
        """
        Return credentials for the given scopes.

        Raises:
            AuthError: on load/refresh/flow failures.
            InvalidArgumentError: if scopes is invalid.
        """
        if not scopes or not all(isinstance(s, str) and s.strip() for s in scopes):
            raise InvalidArgumentError("scopes must be a non-empty sequence of strings")

        if self._auth_info.kind == "service_account":
            return self._service_account_credentials(scopes)
        return self._oauth_credentials(scopes, ensure_valid)

    def build_service(
        self,
        api_name: str,
        api_version: str,
        scopes: Sequence[str],
        ensure_valid: bool = True,
    ):
        """
        Build a Google API discovery service resource.

        Returns:
            googleapiclient.discovery.Resource
        """
        try:
            from googleapiclient.discovery import build
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                details={"hint": "Install google-api-python-client"},
                cause=exc,
            ) from exc

        creds = self.get_credentials(scopes=scopes, ensure_valid=ensure_valid)
        try:
            return build(api_name, api_version, credentials=creds, cache_discovery=False)
        except Exception as exc:
            raise AuthError(
                f"Failed to build {api_name} {api_version} service",
                cause=exc,
            ) from exc

    def _service_account_credentials(self, scopes: Sequence[str]):
        try:
            from google.oauth2 import service_account
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "Google auth libraries are not available",
                details={"hint": "Install google-auth"},
                cause=exc,
            ) from exc

        path = self._auth_info.service_account_file
        try:
            creds = service_account.Credentials.from_service_account_file(
                path,
                scopes=list(scopes),
            )
        except Exception as exc:
            raise AuthError(
                "Failed to load service_account_file",
                details={"service_account_file": path},
                cause=exc,
            ) from exc

        if self._auth_info.subject:
            creds = creds.with_subject(self._auth_info.subject)
        return creds

    def _oauth_credentials(self, scopes: Sequence[str], ensure_valid: bool):
        try:
            from google.auth.transport.requests import Request
            from google.oauth2.credentials import Credentials
            from google_auth_oauthlib.flow import InstalledAppFlow
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "Google auth libraries are not available",
                details={"hint": "Install google-auth and google-auth-oauthlib"},
                cause=exc,
            ) from exc

        token_file = self._auth_info.token_file
        if os.path.exists(token_file):
            try:
                creds = Credentials.from_authorized_user_file(token_file, scopes=list(scopes))
            except Exception as exc:
                raise AuthError(
                    "Failed to load token_file",
                    details={"token_file": token_file},
                    cause=exc,
                ) from exc

            if not ensure_valid:
                return creds

            if not creds.valid and creds.refresh_token:
                try:
                    creds.refresh(Request())
                    self._save_credentials(creds)
                except Exception as exc:
                    raise AuthError(
                        "Failed to refresh OAuth credentials",
                        details={"token_file": token_file},
                        cause=exc,
                    ) from exc

            if creds.valid:
                return creds

        # No usable token: run the installed-app flow.
        client_secrets = self._auth_info.client_secrets_file
        logger.info("Starting OAuth authorization flow (%s)", client_secrets)
        try:
            flow = InstalledAppFlow.from_client_secrets_file(client_secrets, scopes=list(scopes))
            creds = flow.run_local_server(port=0)
        except Exception as exc:
            raise AuthError(
                "OAuth authorization flow failed",
                details={
                    "client_secrets_file": client_secrets,
                    "token_file": token_file,
                },
                cause=exc,
            ) from exc
        self._save_credentials(creds)
        return creds

    def _save_credentials(self, creds) -> None:
        token_file = self._auth_info.token_file
        token_dir = os.path.dirname(token_file)
        if token_dir:
            os.makedirs(token_dir, exist_ok=True)

        try:
            with open(token_file, "w", encoding="utf-8") as f:
                f.write(creds.to_json())
        except Exception as exc:
            raise AuthError(
                "Failed to save OAuth token file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc
