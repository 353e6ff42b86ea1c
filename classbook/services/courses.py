"""Accès à l'API des cours."""

from __future__ import annotations

import logging

import requests

from classbook.config import AppConfig
from classbook.state import CourseRecord

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class FetchError(RuntimeError):
    """Erreur levée lorsque la liste des cours ne peut pas être récupérée."""


class CourseService:
    """Récupère la liste des cours depuis l'API distante."""

    def __init__(self, config: AppConfig) -> None:
        self._url = config.courses_url

    @property
    def url(self) -> str:
        return self._url

    def fetch_courses(self) -> list[CourseRecord]:
        """Effectue un unique GET sur l'endpoint des cours, sans paramètres."""
        try:
            response = requests.get(self._url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise FetchError(f"Impossible de joindre {self._url}") from exc
        except ValueError as exc:
            raise FetchError("Réponse JSON invalide.") from exc

        if not isinstance(payload, list):
            raise FetchError("La réponse de l'API n'est pas une liste de cours.")

        try:
            courses = [CourseRecord.from_json(item) for item in payload]
        except (ValueError, TypeError, AttributeError) as exc:
            raise FetchError(f"Cours mal formé : {exc}") from exc

        logger.debug("%d cours récupérés depuis %s", len(courses), self._url)
        return courses
