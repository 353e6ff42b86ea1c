"""Liste des cours : récupération et règles d'affichage des cartes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from classbook.services.courses import CourseService, FetchError
from classbook.state import CourseRecord

logger = logging.getLogger(__name__)

SOLD_OUT_STYLE = "sold-out"
DEFAULT_STYLE = "default"


@dataclass(frozen=True, slots=True)
class CourseCard:
    """Ce que l'interface affiche pour un cours."""

    name: str
    instructor: str
    available_seats: int
    price: float
    image: str
    sold_out: bool

    @property
    def action_enabled(self) -> bool:
        return not self.sold_out

    @property
    def style(self) -> str:
        return SOLD_OUT_STYLE if self.sold_out else DEFAULT_STYLE

    @classmethod
    def from_record(cls, record: CourseRecord) -> "CourseCard":
        return cls(
            name=record.name,
            instructor=record.instructor,
            available_seats=record.available_seats,
            price=record.price,
            image=record.image,
            sold_out=record.is_full,
        )


class CourseListing:
    """Détient la collection de cours de l'activation courante."""

    def __init__(self, service: CourseService) -> None:
        self._service = service
        self._courses: list[CourseRecord] = []
        self._generation = 0
        self.last_error: FetchError | None = None

    @property
    def courses(self) -> tuple[CourseRecord, ...]:
        return tuple(self._courses)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def service(self) -> CourseService:
        return self._service

    def activate(self) -> int:
        """Démarre une nouvelle activation et retourne son numéro."""
        self._generation += 1
        return self._generation

    def deactivate(self) -> None:
        """Rend obsolète toute récupération encore en cours."""
        self._generation += 1

    def fetch(self, generation: int) -> bool:
        """Récupère les cours puis les applique si l'activation est toujours courante."""
        try:
            courses = self._service.fetch_courses()
        except FetchError as exc:
            return self.fail(generation, exc)
        return self.apply(generation, courses)

    def apply(self, generation: int, courses: list[CourseRecord]) -> bool:
        """Remplace toute la collection ; ignore un résultat d'une activation périmée."""
        if generation != self._generation:
            logger.debug("Résultat de l'activation %d ignoré", generation)
            return False
        self._courses = list(courses)
        self.last_error = None
        return True

    def fail(self, generation: int, error: FetchError) -> bool:
        """Enregistre l'échec de l'activation courante ; la collection reste inchangée."""
        if generation != self._generation:
            return False
        logger.error("Error fetching courses: %s", error)
        self.last_error = error
        return False

    def load_courses(self) -> Iterator[CourseRecord]:
        """Nouvelle activation, un seul GET, puis itérateur à usage unique sur les cours."""
        self.fetch(self.activate())
        return iter(tuple(self._courses))

    def cards(self) -> list[CourseCard]:
        return [CourseCard.from_record(record) for record in self._courses]
