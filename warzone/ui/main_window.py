from __future__ import annotations

import logging
import os
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QProgressBar,
    QPushButton,
    QStackedWidget,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from warzone.core.accounts import AccountStore
from warzone.core.campaign import Campaign
from warzone.core.errors import (
    AuthenticationError,
    MissionLockedError,
    OutOfAmmoError,
    PersistenceError,
    RegistrationError,
    SessionClosedError,
)
from warzone.core.missions import MAX_LEVEL, MissionCatalog
from warzone.core.session import Explosion, MissionResult
from warzone.ui.battlefield import BattlefieldWidget
from warzone.ui.colors import WarColors
from warzone.ui.models import build_mission_states
from warzone.ui.timers import QtScheduler

logger = logging.getLogger(__name__)

STYLE_SHEET = f"""
QWidget {{ background: {WarColors.BG_BOTTOM}; color: {WarColors.TEXT_PRIMARY}; }}
QLineEdit {{ background: {WarColors.BG_TOP}; border: 1px solid {WarColors.CARD_BORDER}; padding: 6px; }}
QPushButton {{ background: {WarColors.PRIMARY_DARK}; border: none; padding: 8px 14px; font-weight: bold; }}
QPushButton:disabled {{ background: {WarColors.CARD_LOCKED}; color: {WarColors.TEXT_MUTED}; }}
QPushButton#dangerButton {{ background: {WarColors.DESTRUCTIVE}; }}
QFrame#card {{ background: {WarColors.CARD_BG}; border: 1px solid {WarColors.CARD_BORDER}; border-radius: 6px; }}
QLabel#title {{ color: {WarColors.PRIMARY}; font-size: 32px; font-weight: 900; letter-spacing: 4px; }}
QLabel#muted {{ color: {WarColors.TEXT_MUTED}; }}
QLabel#banner {{ color: {WarColors.PRIMARY}; font-size: 18px; font-weight: bold; }}
"""


class MainWindow(QMainWindow):
    """Main window with sign-in, menu/profile and battle screens."""

    def __init__(self, catalog: MissionCatalog, store: AccountStore) -> None:
        super().__init__()
        self._catalog = catalog
        self._store = store
        self._scheduler = QtScheduler(self)
        self._unlock_all = os.environ.get("WARZONE_UNLOCK_ALL") == "1"
        self._campaign = Campaign(
            catalog,
            store,
            self._scheduler,
            on_return_to_menu=self._on_returned_to_menu,
            on_effect=self._on_effect,
            unlock_all=self._unlock_all,
        )

        self._stack = QStackedWidget()
        self._auth_screen = self._build_auth_screen()
        self._menu_screen = self._build_menu_screen()
        self._game_screen = self._build_game_screen()
        for screen in (self._auth_screen, self._menu_screen, self._game_screen):
            self._stack.addWidget(screen)

        self.setCentralWidget(self._stack)
        self.setWindowTitle("Warzone")
        self.setStyleSheet(STYLE_SHEET)

        if self._store.read_current_player() is not None:
            self._show_menu()
        else:
            self._stack.setCurrentWidget(self._auth_screen)

    # -- screens ----------------------------------------------------------

    def _build_auth_screen(self) -> QWidget:
        screen = QWidget()
        outer = QVBoxLayout(screen)
        outer.setAlignment(Qt.AlignCenter)

        card = QFrame()
        card.setObjectName("card")
        card.setFixedWidth(420)
        layout = QVBoxLayout(card)
        layout.setContentsMargins(24, 24, 24, 24)

        title = QLabel("WARZONE")
        title.setObjectName("title")
        title.setAlignment(Qt.AlignCenter)
        subtitle = QLabel("Tactical military shooter")
        subtitle.setObjectName("muted")
        subtitle.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)
        layout.addWidget(subtitle)

        tabs = QTabWidget()
        login_tab = QWidget()
        login_layout = QVBoxLayout(login_tab)
        self._login_nickname = QLineEdit()
        self._login_nickname.setPlaceholderText("Nickname")
        self._login_password = QLineEdit()
        self._login_password.setPlaceholderText("Password")
        self._login_password.setEchoMode(QLineEdit.Password)
        login_button = QPushButton("ENTER THE BATTLE")
        login_button.clicked.connect(self._login)
        self._login_password.returnPressed.connect(self._login)
        for w in (self._login_nickname, self._login_password, login_button):
            login_layout.addWidget(w)

        register_tab = QWidget()
        register_layout = QVBoxLayout(register_tab)
        self._register_email = QLineEdit()
        self._register_email.setPlaceholderText("soldier@warzone.com")
        self._register_nickname = QLineEdit()
        self._register_nickname.setPlaceholderText("Your call sign")
        self._register_password = QLineEdit()
        self._register_password.setPlaceholderText("Create a password")
        self._register_password.setEchoMode(QLineEdit.Password)
        register_button = QPushButton("REGISTER")
        register_button.clicked.connect(self._register)
        for w in (self._register_email, self._register_nickname, self._register_password, register_button):
            register_layout.addWidget(w)

        tabs.addTab(login_tab, "SIGN IN")
        tabs.addTab(register_tab, "REGISTER")
        layout.addWidget(tabs)

        self._auth_status = QLabel("")
        self._auth_status.setWordWrap(True)
        layout.addWidget(self._auth_status)

        outer.addWidget(card)
        return screen

    def _build_menu_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(32, 24, 32, 24)

        title = QLabel("WARZONE")
        title.setObjectName("title")
        title.setAlignment(Qt.AlignCenter)
        self._welcome_label = QLabel("")
        self._welcome_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)
        layout.addWidget(self._welcome_label)

        self._menu_status = QLabel("")
        self._menu_status.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._menu_status)

        body = QHBoxLayout()
        missions_card = QFrame()
        missions_card.setObjectName("card")
        self._missions_grid = QGridLayout(missions_card)
        self._missions_grid.setContentsMargins(16, 16, 16, 16)
        body.addWidget(missions_card, 2)

        profile_card = QFrame()
        profile_card.setObjectName("card")
        profile_layout = QVBoxLayout(profile_card)
        profile_layout.setContentsMargins(16, 16, 16, 16)
        self._profile_nickname = QLabel("")
        self._profile_nickname.setObjectName("banner")
        self._profile_email = QLabel("")
        self._profile_email.setObjectName("muted")
        self._profile_level = QLabel("")
        self._profile_progress = QProgressBar()
        self._profile_progress.setRange(0, 100)
        self._profile_loadout = QLabel("")
        self._profile_loadout.setWordWrap(True)
        self._profile_allies = QLabel("")
        self._profile_allies.setObjectName("muted")
        logout_button = QPushButton("SIGN OUT")
        logout_button.setObjectName("dangerButton")
        logout_button.clicked.connect(self._logout)
        for w in (
            self._profile_nickname,
            self._profile_email,
            self._profile_level,
            self._profile_progress,
            self._profile_loadout,
            self._profile_allies,
        ):
            profile_layout.addWidget(w)
        profile_layout.addStretch(1)
        profile_layout.addWidget(logout_button)
        body.addWidget(profile_card, 1)

        layout.addLayout(body, 1)
        return screen

    def _build_game_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(16, 16, 16, 16)

        hud = QFrame()
        hud.setObjectName("card")
        hud_layout = QHBoxLayout(hud)
        self._health_label = QLabel("")
        self._ammo_label = QLabel("")
        self._kills_label = QLabel("")
        for w in (self._health_label, self._ammo_label, self._kills_label):
            hud_layout.addWidget(w)
        hud_layout.addStretch(1)
        self._level_badge = QLabel("")
        self._level_badge.setObjectName("banner")
        hud_layout.addWidget(self._level_badge)
        hud_layout.addStretch(1)
        exit_button = QPushButton("X")
        exit_button.setObjectName("dangerButton")
        exit_button.clicked.connect(lambda: self._campaign.return_to_menu())
        hud_layout.addWidget(exit_button)
        layout.addWidget(hud)

        self._battlefield = BattlefieldWidget(now_ms=self._scheduler.now_ms, on_shot=self._on_shot)
        layout.addWidget(self._battlefield, 1)

        self._final_banner = QLabel("FINAL BATTLE - shells are exploding all around you!")
        self._final_banner.setObjectName("banner")
        self._final_banner.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._final_banner)

        self._game_footer = QLabel("")
        self._game_footer.setObjectName("muted")
        self._game_footer.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._game_footer)
        return screen

    # -- auth -------------------------------------------------------------

    def _login(self) -> None:
        try:
            self._store.login(self._login_nickname.text().strip(), self._login_password.text())
        except AuthenticationError as e:
            self._auth_status.setText(str(e))
            return
        except PersistenceError as e:
            self._menu_status.setText(f"Signed in, but the session could not be saved: {e}")
        self._login_password.clear()
        self._show_menu()

    def _register(self) -> None:
        try:
            self._store.register(
                self._register_email.text(),
                self._register_nickname.text(),
                self._register_password.text(),
            )
        except RegistrationError as e:
            self._auth_status.setText(str(e))
            return
        except PersistenceError as e:
            self._auth_status.setText(str(e))
            return
        self._register_password.clear()
        self._menu_status.setText("Registration complete. Welcome to the front!")
        self._show_menu()

    def _logout(self) -> None:
        self._campaign.return_to_menu(notify=False)
        try:
            self._store.logout()
        except PersistenceError as e:
            logger.error("Sign-out was not saved: %s", e)
        self._auth_status.setText("")
        self._stack.setCurrentWidget(self._auth_screen)

    # -- menu -------------------------------------------------------------

    def _show_menu(self) -> None:
        self._battlefield.set_session(None)
        self._refresh_menu()
        self._stack.setCurrentWidget(self._menu_screen)

    def _refresh_menu(self) -> None:
        player = self._store.read_current_player()
        if player is None:
            self._stack.setCurrentWidget(self._auth_screen)
            return

        self._welcome_label.setText(f"Welcome, {player.nickname}")
        self._profile_nickname.setText(player.nickname)
        self._profile_email.setText(player.email)
        self._profile_level.setText(f"Level {player.level} / {MAX_LEVEL}")
        self._profile_progress.setValue(self._campaign.tracker.completion_percent())
        self._profile_loadout.setText("Loadout: " + ", ".join(sorted(player.loadout)))
        self._profile_allies.setText(f"Allies: {len(player.allies)}")

        while self._missions_grid.count():
            item = self._missions_grid.takeAt(0)
            w = item.widget()
            if w is not None:
                w.setParent(None)
                w.deleteLater()

        states = build_mission_states(self._catalog, self._campaign.tracker.unlocked_level(), self._unlock_all)
        for idx, state in enumerate(states):
            mission = state.mission
            mark = "✓ " if state.cleared else ("▶ " if state.is_current else "")
            button = QPushButton(f"{mark}{mission.level}. {mission.name}\n{mission.enemy_count} enemies")
            button.setToolTip(mission.description)
            button.setEnabled(state.unlocked)
            button.clicked.connect(lambda _=False, level=mission.level: self._start_mission(level))
            self._missions_grid.addWidget(button, idx // 2, idx % 2)

    def _on_returned_to_menu(self, result: Optional[MissionResult]) -> None:
        if result is not None:
            self._menu_status.setText(
                f"Mission {result.mission_level} complete! Enemies eliminated: {result.kill_count}"
            )
        self._show_menu()

    # -- battle -----------------------------------------------------------

    def _start_mission(self, level: int) -> None:
        try:
            session = self._campaign.start_mission(level)
        except MissionLockedError as e:
            self._menu_status.setText(str(e))
            return
        self._menu_status.setText("")
        self._battlefield.set_session(session)
        self._final_banner.setVisible(session.mission.is_final)
        self._refresh_hud()
        self._stack.setCurrentWidget(self._game_screen)

    def _on_shot(self, target_id: Optional[int]) -> None:
        try:
            outcome = self._campaign.fire_at(target_id)
        except OutOfAmmoError:
            self._game_footer.setText("Out of ammo! Return to the menu to try again.")
            return
        except SessionClosedError:
            return
        except PersistenceError as e:
            self._refresh_hud()
            self._game_footer.setText(f"Mission cleared, but progress was not saved: {e}")
            return
        self._refresh_hud()
        if outcome.cleared:
            self._game_footer.setText(f"Mission cleared! Enemies eliminated: {self._campaign.last_result.kill_count}")

    def _on_effect(self, effect: Explosion) -> None:
        self._battlefield.effects_changed()

    def _refresh_hud(self) -> None:
        session = self._campaign.session
        if session is None:
            return
        self._health_label.setText(f"♥ {session.health}%")
        self._ammo_label.setText(f"Ammo {session.ammo}")
        self._kills_label.setText(f"Kills {session.kills}")
        self._level_badge.setText(f"LEVEL {session.level}")
        self._game_footer.setText(f"Click enemies to shoot • Enemies left: {session.remaining}")
        self._battlefield.update()

    def closeEvent(self, event: QCloseEvent) -> None:
        """Drop any running mission before the window goes away."""
        self._campaign.return_to_menu(notify=False)
        super().closeEvent(event)
