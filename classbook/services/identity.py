"""Encapsulation des appels à Firebase Authentication (API REST)."""

from __future__ import annotations

import json
import logging
import os
import shutil
import sys
import webbrowser
from typing import Any

import requests
from google_auth_oauthlib.flow import InstalledAppFlow

from classbook.config import AppConfig, ConfigError
from classbook.state import Account

logger = logging.getLogger(__name__)

IDENTITY_BASE_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
GOOGLE_SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]
GOOGLE_PROVIDER = "google"
REQUEST_TIMEOUT = 30


def _system_browser() -> str | None:
    """Enregistre l'outil système adapté pour ouvrir le popup OAuth sous Linux/WSL."""
    candidates = []
    if "WSL_DISTRO_NAME" in os.environ:
        candidates.append("wslview")
    if sys.platform.startswith("linux"):
        candidates.append("xdg-open")

    for command in candidates:
        if shutil.which(command):
            webbrowser.register(command, None, webbrowser.GenericBrowser(command))
            return command
    return None


class IdentityServiceError(RuntimeError):
    """Erreur générique levée lors des appels au fournisseur d'identité."""


class AccountCreationError(IdentityServiceError):
    """La création du compte a échoué."""


class ProfileUpdateError(IdentityServiceError):
    """La mise à jour du profil a échoué."""


class ProviderError(IdentityServiceError):
    """La connexion via un fournisseur externe a échoué."""


class SessionError(IdentityServiceError):
    """La session en cache n'a pas pu être restaurée."""


def _error_code(response: requests.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {response.status_code}"


def _account_from_payload(payload: dict[str, Any], previous: Account | None = None) -> Account:
    """Construit un Account depuis une réponse Firebase, en gardant les jetons connus."""
    base = previous or Account(uid="")
    return Account(
        uid=payload.get("localId") or payload.get("user_id") or base.uid,
        email=payload.get("email") or base.email,
        display_name=payload.get("displayName") or base.display_name,
        photo_url=payload.get("photoUrl") or base.photo_url,
        id_token=payload.get("idToken") or payload.get("id_token") or base.id_token,
        refresh_token=payload.get("refreshToken") or payload.get("refresh_token") or base.refresh_token,
    )


class IdentityService:
    """Service responsable de l'authentification auprès de Firebase."""

    def __init__(self, config: AppConfig, *, cache_path: str = ".classbook_session") -> None:
        self._config = config
        self._cache_path = cache_path
        self._account: Account | None = None

    @property
    def is_authenticated(self) -> bool:
        return self._account is not None

    def current_session(self) -> Account | None:
        """Retourne le compte actuellement connecté, sans appel réseau."""
        return self._account

    # --------------------------------------------------------------- Accounts -
    def create_account(self, email: str, password: str) -> Account:
        """Crée un compte email / mot de passe et ouvre la session correspondante."""
        try:
            payload = self._post(
                "accounts:signUp",
                {"email": email, "password": password, "returnSecureToken": True},
            )
        except IdentityServiceError as exc:
            raise AccountCreationError(str(exc)) from exc

        account = _account_from_payload(payload)
        self._store(account)
        return account

    def update_profile(self, account: Account, *, display_name: str, photo_url: str) -> Account:
        """Met à jour le nom affiché et la photo du compte."""
        body: dict[str, Any] = {"idToken": account.id_token, "returnSecureToken": True}
        if display_name:
            body["displayName"] = display_name
        if photo_url:
            body["photoUrl"] = photo_url

        try:
            payload = self._post("accounts:update", body)
        except IdentityServiceError as exc:
            raise ProfileUpdateError(str(exc)) from exc

        updated = _account_from_payload(payload, previous=account)
        updated.display_name = display_name or None
        updated.photo_url = photo_url or None
        self._store(updated)
        return updated

    def sign_in_with_popup(self, provider: str = GOOGLE_PROVIDER) -> Account:
        """Ouvre le popup OAuth du fournisseur puis échange le jeton auprès de Firebase."""
        if provider != GOOGLE_PROVIDER:
            raise ProviderError(f"Fournisseur non supporté : {provider}")
        if not self._config.google_is_configured():
            raise ConfigError(
                "Le client OAuth Google n'est pas configuré. "
                "Définissez GOOGLE_CLIENT_ID et GOOGLE_CLIENT_SECRET."
            )

        try:
            flow = InstalledAppFlow.from_client_config(
                {
                    "installed": {
                        "client_id": self._config.google_client_id,
                        "client_secret": self._config.google_client_secret,
                        "auth_uri": GOOGLE_AUTH_URI,
                        "token_uri": GOOGLE_TOKEN_URI,
                        "redirect_uris": ["http://localhost"],
                    }
                },
                scopes=GOOGLE_SCOPES,
            )
            credentials = flow.run_local_server(
                port=self._config.redirect_port,
                open_browser=True,
                browser=_system_browser(),
            )
        except Exception as exc:  # noqa: BLE001
            raise ProviderError("Échec de la connexion Google.") from exc

        id_token = getattr(credentials, "id_token", None)
        if not id_token:
            raise ProviderError("Google n'a pas renvoyé de jeton d'identité.")

        try:
            payload = self._post(
                "accounts:signInWithIdp",
                {
                    "postBody": f"id_token={id_token}&providerId=google.com",
                    "requestUri": f"http://localhost:{self._config.redirect_port}",
                    "returnIdpCredential": True,
                    "returnSecureToken": True,
                },
            )
        except IdentityServiceError as exc:
            raise ProviderError(str(exc)) from exc

        account = _account_from_payload(payload)
        self._store(account)
        return account

    # ---------------------------------------------------------------- Session -
    def try_authenticate_from_cache(self) -> Account | None:
        """Tente de restaurer silencieusement la session en cache.

        Retourne le compte si le jeton de rafraîchissement est encore valide,
        None sinon (pas de cache, cache illisible ou jeton révoqué).
        """
        if not self._config.identity_is_configured():
            return None

        try:
            with open(self._cache_path, encoding="utf-8") as handle:
                cached = json.load(handle)
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            logger.warning("Cache de session illisible : %s", self._cache_path)
            return None

        try:
            account = self._refresh(cached.get("refresh_token", ""))
        except IdentityServiceError as exc:
            logger.info("Session en cache expirée : %s", exc)
            return None

        self._store(account)
        return account

    def logout(self) -> None:
        """Déconnecte l'utilisateur et supprime le cache de session."""
        self._account = None

        try:
            os.remove(self._cache_path)
        except FileNotFoundError:
            pass

    def _refresh(self, refresh_token: str) -> Account:
        if not refresh_token:
            raise SessionError("Aucun jeton de rafraîchissement.")

        try:
            response = requests.post(
                SECURE_TOKEN_URL,
                params={"key": self._config.firebase_api_key},
                data={"grant_type": "refresh_token", "refresh_token": refresh_token},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise SessionError("Firebase injoignable.") from exc
        if not response.ok:
            raise SessionError(_error_code(response))

        try:
            payload = response.json()
        except ValueError as exc:
            raise SessionError("Réponse de rafraîchissement illisible.") from exc
        if not isinstance(payload, dict):
            raise SessionError("Réponse de rafraîchissement inattendue.")

        account = _account_from_payload(payload)
        try:
            lookup = self._post("accounts:lookup", {"idToken": account.id_token})
        except IdentityServiceError as exc:
            raise SessionError(str(exc)) from exc

        users = lookup.get("users") or [{}]
        return _account_from_payload(users[0], previous=account)

    def _store(self, account: Account) -> None:
        self._account = account
        try:
            with open(self._cache_path, "w", encoding="utf-8") as handle:
                json.dump({"uid": account.uid, "refresh_token": account.refresh_token}, handle)
        except OSError:
            logger.warning("Impossible d'écrire le cache de session : %s", self._cache_path)

    def _post(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        if not self._config.identity_is_configured():
            raise ConfigError(
                "La clé d'API Firebase n'est pas configurée. Définissez FIREBASE_API_KEY."
            )

        try:
            response = requests.post(
                f"{IDENTITY_BASE_URL}/{endpoint}",
                params={"key": self._config.firebase_api_key},
                json=body,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise IdentityServiceError(f"Firebase injoignable ({endpoint}).") from exc

        if not response.ok:
            raise IdentityServiceError(_error_code(response))

        try:
            payload = response.json()
        except ValueError as exc:
            raise IdentityServiceError(f"Réponse Firebase illisible ({endpoint}).") from exc
        if not isinstance(payload, dict):
            raise IdentityServiceError(f"Réponse Firebase inattendue ({endpoint}).")
        return payload
