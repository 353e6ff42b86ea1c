"""Parcours d'inscription : validation du formulaire puis création du compte.

Le parcours ne connaît le fournisseur d'identité qu'au travers de l'objet
injecté à la construction. Chaque appel externe est une étape explicite ;
un échec termine la tentative avec un résultat étiqueté et ramène le
parcours à l'état IDLE.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol

from classbook.config import ConfigError
from classbook.services.identity import (
    AccountCreationError,
    IdentityServiceError,
    ProfileUpdateError,
    ProviderError,
)
from classbook.state import DEFAULT_REDIRECT_TARGET, Account, RegistrationInput

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
CAPITAL_LETTER_PATTERN = re.compile(r"^(?=.*[A-Z])")
SPECIAL_CHARACTER_PATTERN = re.compile(r"^(?=.*[!@#$%^&*])")

PASSWORD_TOO_SHORT = "Password must be at least 6 characters"
MISSING_FIELDS = "Please fill in all the fields"
PASSWORD_MISMATCH = "Password and Confirm Password do not match"
MISSING_CAPITAL_LETTER = "Password must contain at least one capital letter"
MISSING_SPECIAL_CHARACTER = "Password must contain at least one special character"
NAME_REQUIRED = "Name is required"
EMAIL_REQUIRED = "Email is required"

SUCCESS_TITLE = "User Created"
SUCCESS_TEXT = "Congratulations! Your account has been created successfully."


class FlowState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    CREATING_ACCOUNT = "creating_account"
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_CREATION_FAILED = "account_creation_failed"
    UPDATING_PROFILE = "updating_profile"
    PROFILE_UPDATED = "profile_updated"
    PROFILE_UPDATE_FAILED = "profile_update_failed"
    SIGNING_IN = "signing_in"
    PROVIDER_FAILED = "provider_failed"
    CANCELLED = "cancelled"
    NAVIGATED = "navigated"


@dataclass(frozen=True, slots=True)
class ValidationError:
    """Message de validation ; field vaut None pour une erreur de formulaire."""

    message: str
    field: str | None = None
    form_level: bool = False


@dataclass(slots=True)
class RegistrationResult:
    """Issue d'une tentative d'inscription ou de connexion."""

    state: FlowState
    trail: list[FlowState] = field(default_factory=list)
    target: str | None = None
    account: Account | None = None
    errors: list[ValidationError] = field(default_factory=list)
    # Échec externe journalisé mais jamais présenté à l'utilisateur.
    unhandled: IdentityServiceError | None = None

    @property
    def navigated(self) -> bool:
        return self.state is FlowState.NAVIGATED

    def errors_for(self, field_name: str | None, *, form_level: bool | None = None) -> list[str]:
        return [
            error.message
            for error in self.errors
            if error.field == field_name and form_level in (None, error.form_level)
        ]


class IdentityProvider(Protocol):
    def current_session(self) -> Account | None: ...

    def create_account(self, email: str, password: str) -> Account: ...

    def update_profile(self, account: Account, *, display_name: str, photo_url: str) -> Account: ...

    def sign_in_with_popup(self, provider: str = ...) -> Account: ...


def validate_form(data: RegistrationInput) -> ValidationError | None:
    """Applique les règles du formulaire dans l'ordre ; la première en échec gagne."""
    if len(data.password) < MIN_PASSWORD_LENGTH:
        return ValidationError(PASSWORD_TOO_SHORT, "password", form_level=True)
    if not data.name or not data.email or not data.password:
        return ValidationError(MISSING_FIELDS, form_level=True)
    if data.password != data.confirm_password:
        return ValidationError(PASSWORD_MISMATCH, "password", form_level=True)
    return None


def validate_password(password: str) -> str | None:
    """Règles propres au champ mot de passe (majuscule puis caractère spécial)."""
    if not CAPITAL_LETTER_PATTERN.match(password):
        return MISSING_CAPITAL_LETTER
    if not SPECIAL_CHARACTER_PATTERN.match(password):
        return MISSING_SPECIAL_CHARACTER
    return None


def validate_fields(data: RegistrationInput) -> list[ValidationError]:
    """Règles au niveau des champs, indépendantes de l'ordre du formulaire."""
    errors = []
    if not data.name:
        errors.append(ValidationError(NAME_REQUIRED, "name"))
    if not data.email:
        errors.append(ValidationError(EMAIL_REQUIRED, "email"))
    if data.password:
        message = validate_password(data.password)
        if message:
            errors.append(ValidationError(message, "password"))
    return errors


def validate(data: RegistrationInput) -> list[ValidationError]:
    """Retourne toutes les erreurs bloquantes : formulaire d'abord, puis champs."""
    errors = validate_fields(data)
    form_error = validate_form(data)
    if form_error:
        errors.insert(0, form_error)
    return errors


class RegistrationFlow:
    """Inscription email / mot de passe ou via un fournisseur externe."""

    def __init__(
        self,
        identity: IdentityProvider,
        *,
        navigate: Callable[[str], None],
        notify: Callable[[str, str], None],
        redirect_target: str | None = None,
    ) -> None:
        self._identity = identity
        self._navigate = navigate
        self._notify = notify
        self._redirect_target = redirect_target or DEFAULT_REDIRECT_TARGET
        self._state = FlowState.IDLE
        self._generation = 0

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def redirect_target(self) -> str:
        return self._redirect_target

    # ----------------------------------------------------------------- Public -
    def mount(self) -> RegistrationResult | None:
        """Redirige directement si une session complète existe déjà."""
        self._generation += 1
        account = self._identity.current_session()
        if account is None or not account.is_fully_provisioned:
            return None

        logger.debug("Session existante pour %s, redirection", account.uid)
        return self._finish(RegistrationResult(FlowState.IDLE, account=account), notify=False)

    def unmount(self) -> None:
        """Invalide toute tentative en cours ; ses résultats seront ignorés."""
        self._generation += 1
        self._state = FlowState.IDLE

    def submit_registration(self, data: RegistrationInput) -> RegistrationResult:
        generation = self._begin()
        result = RegistrationResult(FlowState.IDLE)
        self._enter(result, FlowState.VALIDATING)

        errors = validate(data)
        if errors:
            result.errors = errors
            return self._fail(result, FlowState.VALIDATION_FAILED)

        self._enter(result, FlowState.CREATING_ACCOUNT)
        try:
            account = self._identity.create_account(data.email, data.password)
        except AccountCreationError as exc:
            logger.error("Error creating user: %s", exc)
            result.unhandled = exc
            return self._fail(result, FlowState.ACCOUNT_CREATION_FAILED)
        except ConfigError:
            self._state = FlowState.IDLE
            raise

        if self._is_stale(generation):
            return self._cancel(result)
        result.account = account
        self._enter(result, FlowState.ACCOUNT_CREATED)

        self._enter(result, FlowState.UPDATING_PROFILE)
        try:
            account = self._identity.update_profile(
                account, display_name=data.name, photo_url=data.photo_url
            )
        except ProfileUpdateError as exc:
            logger.error("Error updating profile: %s", exc)
            result.unhandled = exc
            return self._fail(result, FlowState.PROFILE_UPDATE_FAILED)
        except ConfigError:
            self._state = FlowState.IDLE
            raise

        if self._is_stale(generation):
            return self._cancel(result)
        result.account = account
        self._enter(result, FlowState.PROFILE_UPDATED)
        logger.info("Profile updated for %s", account.email or account.uid)

        return self._finish(result)

    def register_with_external_provider(self) -> RegistrationResult:
        generation = self._begin()
        result = RegistrationResult(FlowState.IDLE)
        self._enter(result, FlowState.SIGNING_IN)

        try:
            account = self._identity.sign_in_with_popup()
        except ProviderError as exc:
            logger.error("Error signing in with provider: %s", exc)
            result.unhandled = exc
            return self._fail(result, FlowState.PROVIDER_FAILED)
        except ConfigError:
            self._state = FlowState.IDLE
            raise

        if self._is_stale(generation):
            return self._cancel(result)
        result.account = account
        logger.info("Signed in with provider as %s", account.email or account.uid)
        return self._finish(result)

    # --------------------------------------------------------------- Internes -
    def _begin(self) -> int:
        self._generation += 1
        self._state = FlowState.IDLE
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _enter(self, result: RegistrationResult, state: FlowState) -> None:
        self._state = state
        result.state = state
        result.trail.append(state)

    def _fail(self, result: RegistrationResult, state: FlowState) -> RegistrationResult:
        self._enter(result, state)
        self._state = FlowState.IDLE
        return result

    def _cancel(self, result: RegistrationResult) -> RegistrationResult:
        logger.debug("Tentative abandonnée, résultat ignoré")
        result.state = FlowState.CANCELLED
        result.trail.append(FlowState.CANCELLED)
        return result

    def _finish(self, result: RegistrationResult, *, notify: bool = True) -> RegistrationResult:
        result.target = self._redirect_target
        self._enter(result, FlowState.NAVIGATED)
        self._navigate(self._redirect_target)
        if notify:
            self._notify(SUCCESS_TITLE, SUCCESS_TEXT)
        return result
