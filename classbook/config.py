"""Gestion centralisée de la configuration de l'application."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_COURSES_URL = "http://localhost:5000/classes"
DEFAULT_REDIRECT_PORT = 8888
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"
_PLACEHOLDER_PREFIX = "YOUR_"


class ConfigError(RuntimeError):
    """Erreur levée lorsque la configuration est invalide."""


def _is_set(value: str) -> bool:
    return bool(value) and not value.startswith(_PLACEHOLDER_PREFIX)


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Paramètres nécessaires pour parler au fournisseur d'identité et à l'API des cours."""

    firebase_api_key: str
    google_client_id: str = ""
    google_client_secret: str = ""
    redirect_port: int = DEFAULT_REDIRECT_PORT
    courses_url: str = DEFAULT_COURSES_URL
    log_level: str = DEFAULT_LOG_LEVEL

    def identity_is_configured(self) -> bool:
        """Indique si la clé d'API Firebase a été renseignée."""
        return _is_set(self.firebase_api_key)

    def google_is_configured(self) -> bool:
        """Indique si le client OAuth Google a été renseigné."""
        return all(
            _is_set(value) for value in (self.google_client_id, self.google_client_secret)
        )


def _read_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError as exc:
        raise ConfigError(f"OAUTH_REDIRECT_PORT invalide : {raw!r}") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"OAUTH_REDIRECT_PORT hors limites : {port}")
    return port


def load_config() -> AppConfig:
    """Charge la configuration depuis l'environnement (et un éventuel fichier .env)."""
    load_dotenv()

    return AppConfig(
        firebase_api_key=os.getenv("FIREBASE_API_KEY", "YOUR_FIREBASE_API_KEY"),
        google_client_id=os.getenv("GOOGLE_CLIENT_ID", "YOUR_GOOGLE_CLIENT_ID"),
        google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET", "YOUR_GOOGLE_CLIENT_SECRET"),
        redirect_port=_read_port(os.getenv("OAUTH_REDIRECT_PORT", str(DEFAULT_REDIRECT_PORT))),
        courses_url=os.getenv("CLASSBOOK_COURSES_URL", DEFAULT_COURSES_URL),
        log_level=os.getenv("CLASSBOOK_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure le logging racine de l'application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
