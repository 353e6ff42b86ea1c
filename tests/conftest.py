"""
Pytest configuration and shared fixtures for classbook tests

Provides:
- A configured AppConfig
- A fake identity collaborator recording every call
- Navigation / notification recorders
"""

import pytest

from classbook.config import AppConfig
from classbook.services.identity import AccountCreationError, ProfileUpdateError, ProviderError
from classbook.state import Account, RegistrationInput


class FakeIdentity:
    """In-memory identity collaborator with switchable failures."""

    def __init__(self, session=None):
        self.session = session
        self.calls = []
        self.fail_create = False
        self.fail_update = False
        self.fail_popup = False
        self.on_create = None

    def current_session(self):
        return self.session

    def create_account(self, email, password):
        self.calls.append(("create_account", email, password))
        if self.on_create:
            self.on_create()
        if self.fail_create:
            raise AccountCreationError("EMAIL_EXISTS")
        self.session = Account(uid="uid-1", email=email, id_token="tok")
        return self.session

    def update_profile(self, account, *, display_name, photo_url):
        self.calls.append(("update_profile", display_name, photo_url))
        if self.fail_update:
            raise ProfileUpdateError("INVALID_ID_TOKEN")
        self.session = Account(
            uid=account.uid,
            email=account.email,
            display_name=display_name,
            photo_url=photo_url,
            id_token=account.id_token,
        )
        return self.session

    def sign_in_with_popup(self, provider="google"):
        self.calls.append(("sign_in_with_popup", provider))
        if self.fail_popup:
            raise ProviderError("popup closed")
        self.session = Account(uid="g-1", email="g@x.com", display_name="G", photo_url="http://x/g.png")
        return self.session


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args)


@pytest.fixture
def config():
    return AppConfig(
        firebase_api_key="test-api-key",
        google_client_id="client-id",
        google_client_secret="client-secret",
        redirect_port=8888,
        courses_url="http://localhost:5000/classes",
    )


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def navigate():
    return Recorder()


@pytest.fixture
def notify():
    return Recorder()


@pytest.fixture
def ada():
    return RegistrationInput(
        name="Ada",
        email="ada@x.com",
        password="Secret!1",
        confirm_password="Secret!1",
        photo_url="http://x/p.png",
    )
