"""Structures de données partagées entre la couche UI et les services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

DEFAULT_REDIRECT_TARGET = "/"


@dataclass(slots=True)
class RegistrationInput:
    """Valeurs saisies dans le formulaire d'inscription au moment de la soumission."""

    name: str
    email: str
    password: str
    confirm_password: str
    photo_url: str = ""


@dataclass(slots=True)
class Account:
    """Compte renvoyé par le fournisseur d'identité."""

    uid: str
    email: str = ""
    display_name: str | None = None
    photo_url: str | None = None
    id_token: str = ""
    refresh_token: str = ""

    @property
    def is_fully_provisioned(self) -> bool:
        """True si le nom affiché et la photo sont tous deux renseignés."""
        return bool(self.display_name) and bool(self.photo_url)


@dataclass(frozen=True, slots=True)
class CourseRecord:
    """Cours proposé par l'API, en lecture seule."""

    name: str
    instructor: str
    available_seats: int
    price: float
    image: str

    @property
    def is_full(self) -> bool:
        return self.available_seats == 0

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "CourseRecord":
        """Construit un cours depuis un objet JSON de l'API.

        Lève ValueError si le nom manque ou si le nombre de places n'est pas
        un entier positif.
        """
        name = payload.get("name")
        if not name:
            raise ValueError("course without a name")

        seats = payload.get("availableSeats", 0)
        if isinstance(seats, bool) or not isinstance(seats, int) or seats < 0:
            raise ValueError(f"invalid availableSeats for {name!r}: {seats!r}")

        return cls(
            name=str(name),
            instructor=str(payload.get("instructor", "")),
            available_seats=seats,
            price=float(payload.get("price", 0) or 0),
            image=str(payload.get("image", "")),
        )


@dataclass(slots=True)
class AppState:
    """État interne de l'application."""

    username: str | None = None
    avatar_url: str | None = None
    redirect_target: str = DEFAULT_REDIRECT_TARGET
    route: str = DEFAULT_REDIRECT_TARGET

    @property
    def is_authenticated(self) -> bool:
        """Retourne True si l'utilisateur est authentifié."""
        return self.username is not None

    def sign_in(self, account: Account) -> None:
        self.username = account.display_name or account.email or account.uid
        self.avatar_url = account.photo_url

    def reset(self) -> None:
        """Réinitialise l'état de l'application."""
        self.username = None
        self.avatar_url = None
        self.redirect_target = DEFAULT_REDIRECT_TARGET
