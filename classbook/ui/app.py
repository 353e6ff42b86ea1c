"""Interface Tkinter principale."""

from __future__ import annotations

import io
import tkinter as tk
from concurrent.futures import Future, ThreadPoolExecutor
from tkinter import messagebox, ttk
from urllib.request import urlopen

import sv_ttk
from PIL import Image, ImageDraw, ImageTk

from classbook.config import ConfigError
from classbook.listing import CourseCard, CourseListing
from classbook.registration import RegistrationFlow, RegistrationResult
from classbook.services import CourseService, FetchError, IdentityService
from classbook.state import AppState, CourseRecord, RegistrationInput

ACCENT_COLOR = "#6366F1"
BACKGROUND_COLOR = "#121212"
CARD_COLOR = "#1E1E1E"
SOLD_OUT_COLOR = "#EF4444"
STATUS_NEUTRAL_COLOR = "#B3B3B3"
STATUS_ERROR_COLOR = "#F87171"
STATUS_SUCCESS_COLOR = "#22C55E"
WINDOW_WIDTH = 1100
WINDOW_HEIGHT = 760
CARD_COLUMNS = 3
CARD_IMAGE_SIZE = (300, 180)
AVATAR_SIZE = 48
POLL_INTERVAL_MS = 100

CLASSES_ROUTE = "/classes"
REGISTER_ROUTE = "/register"
HOME_ROUTE = "/"


def _download(url: str) -> bytes | None:
    if not url:
        return None
    try:
        with urlopen(url, timeout=5) as response:
            return response.read()
    except Exception:  # noqa: BLE001
        return None


def _fetch_classes(service: CourseService) -> tuple[list[CourseRecord], dict[str, bytes | None]]:
    """Exécuté hors du thread Tk : uniquement les accès réseau, aucun état partagé."""
    courses = service.fetch_courses()
    return courses, {course.name: _download(course.image) for course in courses}


def _card_photo(data: bytes | None) -> ImageTk.PhotoImage | None:
    if not data:
        return None
    try:
        image = Image.open(io.BytesIO(data)).convert("RGB")
        image = image.resize(CARD_IMAGE_SIZE, Image.LANCZOS)
        return ImageTk.PhotoImage(image)
    except Exception:  # noqa: BLE001
        return None


def _avatar_photo(data: bytes | None) -> ImageTk.PhotoImage | None:
    if not data:
        return None
    try:
        image = Image.open(io.BytesIO(data)).convert("RGBA")
        image = image.resize((AVATAR_SIZE, AVATAR_SIZE), Image.LANCZOS)
        mask = Image.new("L", image.size, 0)
        drawer = ImageDraw.Draw(mask)
        drawer.ellipse((0, 0, image.size[0], image.size[1]), fill=255)
        image.putalpha(mask)
        return ImageTk.PhotoImage(image)
    except Exception:  # noqa: BLE001
        return None


class MainWindow:
    """Fenêtre principale de l'application."""

    def __init__(
        self,
        identity: IdentityService,
        listing: CourseListing,
        state: AppState | None = None,
    ) -> None:
        self._identity = identity
        self._listing = listing
        self._state = state or AppState()
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="classbook")
        self._flow: RegistrationFlow | None = None

        self.root = tk.Tk()
        self.root.title("Classbook – Register for classes")
        self.root.geometry(f"{WINDOW_WIDTH}x{WINDOW_HEIGHT}")
        self.root.minsize(820, 540)

        sv_ttk.set_theme("dark")
        self.root.configure(bg=BACKGROUND_COLOR)
        self._configure_styles()

        self._show_password = tk.BooleanVar(value=False)
        self._fields: dict[str, tk.StringVar] = {
            name: tk.StringVar()
            for name in ("name", "email", "password", "confirm_password", "photo_url")
        }
        self._field_errors: dict[str, tk.StringVar] = {
            name: tk.StringVar() for name in ("name", "email", "password", "confirm_password", "form")
        }
        self._password_entries: list[ttk.Entry] = []
        self._card_photos: list[ImageTk.PhotoImage] = []
        self._profile_photo: ImageTk.PhotoImage | None = None

        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(1, weight=1)

        self._build_header()
        self._pages: dict[str, ttk.Frame] = {
            CLASSES_ROUTE: self._build_classes_page(),
            REGISTER_ROUTE: self._build_register_page(),
        }
        self._update_auth_ui()
        self.navigate(self._state.route)

    # --------------------------------------------------------------------- UI -
    def _configure_styles(self) -> None:
        style = ttk.Style()
        style.configure("Main.TFrame", background=BACKGROUND_COLOR)
        style.configure("Card.TFrame", background=CARD_COLOR)
        style.configure("SoldOut.TFrame", background=SOLD_OUT_COLOR)
        style.configure(
            "HeaderTitle.TLabel",
            background=BACKGROUND_COLOR,
            foreground="#FFFFFF",
            font=("Helvetica", 20, "bold"),
        )
        style.configure(
            "Status.TLabel",
            background=BACKGROUND_COLOR,
            foreground=STATUS_NEUTRAL_COLOR,
            font=("Helvetica", 11),
        )
        style.configure("Card.TLabel", background=CARD_COLOR, foreground="#FFFFFF")
        style.configure("SoldOut.TLabel", background=SOLD_OUT_COLOR, foreground="#FFFFFF")
        style.configure(
            "CardTitle.TLabel",
            background=CARD_COLOR,
            foreground="#FFFFFF",
            font=("Helvetica", 14, "bold"),
        )
        style.configure(
            "SoldOutTitle.TLabel",
            background=SOLD_OUT_COLOR,
            foreground="#FFFFFF",
            font=("Helvetica", 14, "bold"),
        )
        style.configure(
            "Error.TLabel",
            background=BACKGROUND_COLOR,
            foreground=STATUS_ERROR_COLOR,
            font=("Helvetica", 10),
        )
        style.configure("Accent.TButton", font=("Helvetica", 11, "bold"))
        style.configure("TButton", padding=(16, 8))
        style.map("TButton", background=[("disabled", "#2B2B2B")])
        style.configure("Profile.TLabel", background=BACKGROUND_COLOR, foreground="#FFFFFF", padding=4)
        self.root.option_add("*Font", "Helvetica 11")

    def _build_header(self) -> None:
        frame = ttk.Frame(self.root, style="Main.TFrame", padding=(24, 12))
        frame.grid(row=0, column=0, sticky="we")
        frame.columnconfigure(1, weight=1)

        self._status_label = ttk.Label(frame, text="Not signed in", style="Status.TLabel")
        self._status_label.grid(row=0, column=0, sticky="w")

        nav = ttk.Frame(frame, style="Main.TFrame")
        nav.grid(row=0, column=1)
        ttk.Button(nav, text="Classes", command=lambda: self.navigate(CLASSES_ROUTE)).pack(
            side=tk.LEFT, padx=6
        )
        self._register_nav = ttk.Button(
            nav, text="Register", command=lambda: self.navigate(REGISTER_ROUTE)
        )
        self._register_nav.pack(side=tk.LEFT, padx=6)

        self._profile_label = ttk.Label(frame, text="🙂", style="Profile.TLabel", cursor="hand2")
        self._profile_label.grid(row=0, column=2, sticky="e")
        self._profile_label.bind("<Button-1>", self._show_profile_menu)

        self._profile_menu = tk.Menu(self.root, tearoff=0)
        self._profile_menu.add_command(label="Logout", command=self.logout)

    def _build_classes_page(self) -> ttk.Frame:
        page = ttk.Frame(self.root, style="Main.TFrame", padding=(24, 8))
        page.columnconfigure(0, weight=1)
        page.rowconfigure(0, weight=1)

        canvas = tk.Canvas(page, bg=BACKGROUND_COLOR, highlightthickness=0)
        canvas.grid(row=0, column=0, sticky="nsew")
        scrollbar = ttk.Scrollbar(page, orient=tk.VERTICAL, command=canvas.yview)
        scrollbar.grid(row=0, column=1, sticky="ns")
        canvas.configure(yscrollcommand=scrollbar.set)

        self._cards_frame = ttk.Frame(canvas, style="Main.TFrame")
        canvas.create_window((0, 0), window=self._cards_frame, anchor="nw")
        self._cards_frame.bind(
            "<Configure>", lambda _: canvas.configure(scrollregion=canvas.bbox("all"))
        )
        for column in range(CARD_COLUMNS):
            self._cards_frame.columnconfigure(column, weight=1)
        return page

    def _build_register_page(self) -> ttk.Frame:
        page = ttk.Frame(self.root, style="Main.TFrame", padding=(24, 8))
        page.columnconfigure(0, weight=1)

        ttk.Label(page, text="Register now!", style="HeaderTitle.TLabel").grid(
            row=0, column=0, pady=(0, 16)
        )

        form = ttk.Frame(page, style="Main.TFrame")
        form.grid(row=1, column=0)
        form.columnconfigure(1, weight=1)

        rows = [
            ("Name", "name", False),
            ("Email", "email", False),
            ("Password", "password", True),
            ("Confirm Password", "confirm_password", True),
            ("Photo Url", "photo_url", False),
        ]
        row = 0
        for label, key, secret in rows:
            ttk.Label(form, text=label, style="Status.TLabel").grid(
                row=row, column=0, sticky="w", pady=(8, 0), padx=(0, 12)
            )
            entry = ttk.Entry(form, textvariable=self._fields[key], width=42)
            if secret:
                entry.configure(show="•")
                self._password_entries.append(entry)
            entry.grid(row=row, column=1, sticky="ew", pady=(8, 0))
            row += 1
            if key in self._field_errors:
                ttk.Label(form, textvariable=self._field_errors[key], style="Error.TLabel").grid(
                    row=row, column=1, sticky="w"
                )
                row += 1

        ttk.Checkbutton(
            form,
            text="Show password",
            variable=self._show_password,
            command=self._toggle_password,
        ).grid(row=row, column=1, sticky="w", pady=(8, 0))
        row += 1

        ttk.Label(form, textvariable=self._field_errors["form"], style="Error.TLabel").grid(
            row=row, column=1, sticky="w", pady=(8, 0)
        )
        row += 1

        ttk.Button(
            form, text="Register", style="Accent.TButton", command=self.submit_registration
        ).grid(row=row, column=1, sticky="ew", pady=(16, 0))
        row += 1

        ttk.Label(form, text="OR Login With", style="Status.TLabel").grid(
            row=row, column=1, pady=(16, 0)
        )
        row += 1
        ttk.Button(form, text="Google", command=self.register_with_google).grid(
            row=row, column=1, pady=(8, 0)
        )
        return page

    def _toggle_password(self) -> None:
        show = "" if self._show_password.get() else "•"
        for entry in self._password_entries:
            entry.configure(show=show)

    def _show_profile_menu(self, event: tk.Event) -> None:
        if not self._state.is_authenticated:
            return

        try:
            self._profile_menu.tk_popup(event.x_root, event.y_root)
        finally:
            self._profile_menu.grab_release()

    def _update_profile_avatar(self) -> None:
        avatar_url = self._state.avatar_url if self._state.is_authenticated else None
        self._profile_photo = _avatar_photo(_download(avatar_url or ""))

        if self._profile_photo:
            self._profile_label.configure(image=self._profile_photo, text="")
        else:
            self._profile_label.configure(image="", text="🙂")
        self._profile_label.image = self._profile_photo

    def _update_auth_ui(self) -> None:
        """Met à jour l'en-tête en fonction de l'état d'authentification."""
        if self._state.is_authenticated:
            self._status_label.configure(
                text=f"Signed in as: {self._state.username}",
                foreground=STATUS_SUCCESS_COLOR,
            )
            self._register_nav.configure(state=tk.DISABLED)
        else:
            self._status_label.configure(text="Not signed in", foreground=STATUS_NEUTRAL_COLOR)
            self._register_nav.configure(state=tk.NORMAL)
        self._update_profile_avatar()

    # ----------------------------------------------------------------- Pages -
    def navigate(self, target: str) -> None:
        """Affiche la page correspondant à la route, en désactivant la précédente."""
        route = CLASSES_ROUTE if target in (HOME_ROUTE, CLASSES_ROUTE) else target
        if route not in self._pages:
            route = CLASSES_ROUTE

        self._leave(self._state.route)
        self._state.route = route

        account = self._identity.current_session()
        if account is not None and not self._state.is_authenticated:
            self._state.sign_in(account)
            self._update_auth_ui()

        for name, page in self._pages.items():
            if name == route:
                page.grid(row=1, column=0, sticky="nsew")
            else:
                page.grid_remove()

        if route == CLASSES_ROUTE:
            self._activate_classes()
        else:
            self._activate_register()

    def _leave(self, route: str) -> None:
        if route == REGISTER_ROUTE and self._flow is not None:
            self._flow.unmount()
            self._flow = None
        elif route == CLASSES_ROUTE:
            self._listing.deactivate()

    def _activate_register(self) -> None:
        for var in (*self._fields.values(), *self._field_errors.values()):
            var.set("")
        self._flow = RegistrationFlow(
            self._identity,
            navigate=lambda target: self.root.after_idle(self.navigate, target),
            notify=lambda title, text: messagebox.showinfo(title, text),
            redirect_target=self._state.redirect_target,
        )
        self._flow.mount()

    def _activate_classes(self) -> None:
        generation = self._listing.activate()
        future = self._executor.submit(_fetch_classes, self._listing.service)
        self.root.after(POLL_INTERVAL_MS, self._poll_classes, future, generation)

    def _poll_classes(self, future: Future, generation: int) -> None:
        """Applique le résultat de la récupération sur le thread Tk."""
        if not future.done():
            self.root.after(POLL_INTERVAL_MS, self._poll_classes, future, generation)
            return

        try:
            courses, images = future.result()
        except FetchError as exc:
            self._listing.fail(generation, exc)
            return

        if self._listing.apply(generation, courses):
            self._render_cards(self._listing.cards(), images)

    def _render_cards(self, cards: list[CourseCard], images: dict[str, bytes | None]) -> None:
        for child in self._cards_frame.winfo_children():
            child.destroy()
        self._card_photos.clear()

        for index, card in enumerate(cards):
            prefix = "SoldOut" if card.sold_out else "Card"
            frame = ttk.Frame(self._cards_frame, style=f"{prefix}.TFrame", padding=12)
            frame.grid(
                row=index // CARD_COLUMNS,
                column=index % CARD_COLUMNS,
                sticky="nsew",
                padx=10,
                pady=10,
            )

            photo = _card_photo(images.get(card.name))
            if photo:
                self._card_photos.append(photo)
                ttk.Label(frame, image=photo, style=f"{prefix}.TLabel").pack()

            ttk.Label(frame, text=card.name, style=f"{prefix}Title.TLabel").pack(anchor="w", pady=(8, 0))
            ttk.Label(frame, text=f"{card.instructor} Instructor", style=f"{prefix}.TLabel").pack(anchor="w")
            ttk.Label(
                frame, text=f"{card.available_seats} Available Seats", style=f"{prefix}.TLabel"
            ).pack(anchor="w")
            ttk.Label(frame, text=f"{card.price:g} Price", style=f"{prefix}.TLabel").pack(anchor="w")
            ttk.Button(
                frame,
                text="Learn now!",
                style="Accent.TButton",
                state=tk.NORMAL if card.action_enabled else tk.DISABLED,
                command=lambda name=card.name: self._learn(name),
            ).pack(anchor="e", pady=(8, 0))

    def _learn(self, course_name: str) -> None:
        if self._state.is_authenticated:
            messagebox.showinfo("Classes", f"You selected {course_name}.")
            return
        self._state.redirect_target = CLASSES_ROUTE
        self.navigate(REGISTER_ROUTE)

    # --------------------------------------------------------------- Callbacks -
    def submit_registration(self) -> None:
        if self._flow is None:
            return

        data = RegistrationInput(
            name=self._fields["name"].get().strip(),
            email=self._fields["email"].get().strip(),
            password=self._fields["password"].get(),
            confirm_password=self._fields["confirm_password"].get(),
            photo_url=self._fields["photo_url"].get().strip(),
        )
        try:
            result = self._flow.submit_registration(data)
        except ConfigError as exc:
            messagebox.showwarning("Missing credentials", str(exc))
            return
        self._show_errors(result)

    def register_with_google(self) -> None:
        if self._flow is None:
            return

        try:
            result = self._flow.register_with_external_provider()
        except ConfigError as exc:
            messagebox.showwarning("Missing credentials", str(exc))
            return
        self._show_errors(result)

    def _show_errors(self, result: RegistrationResult) -> None:
        """Affiche les messages de validation sous les champs concernés."""
        self._field_errors["name"].set(" ".join(result.errors_for("name")))
        self._field_errors["email"].set(" ".join(result.errors_for("email")))
        self._field_errors["password"].set(" ".join(result.errors_for("password", form_level=False)))
        self._field_errors["confirm_password"].set(
            " ".join(result.errors_for("password", form_level=True))
        )
        self._field_errors["form"].set(" ".join(result.errors_for(None)))

    def logout(self) -> None:
        """Déconnecte l'utilisateur."""
        if not self._identity.is_authenticated:
            return

        self._identity.logout()
        self._state.reset()
        self._update_auth_ui()

    # ----------------------------------------------------------------- Public -
    def run(self) -> None:
        try:
            self.root.mainloop()
        finally:
            self._executor.shutdown(wait=False, cancel_futures=True)
