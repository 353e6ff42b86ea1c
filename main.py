"""Point d'entrée de l'application Classbook."""

from __future__ import annotations

from classbook.config import configure_logging, load_config
from classbook.listing import CourseListing
from classbook.services import CourseService, IdentityService
from classbook.state import AppState
from classbook.ui.app import MainWindow


def main() -> None:
    """Initialise les dépendances puis lance l'interface Tkinter."""
    config = load_config()
    configure_logging(config.log_level)

    identity = IdentityService(config)
    state = AppState()
    account = identity.try_authenticate_from_cache()
    if account is not None:
        state.sign_in(account)

    listing = CourseListing(CourseService(config))
    app = MainWindow(identity=identity, listing=listing, state=state)
    app.run()


if __name__ == "__main__":
    main()
