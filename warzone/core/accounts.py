from __future__ import annotations

import hashlib
import hmac
import json
import logging
import os
import secrets
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from warzone.core.errors import AuthenticationError, PersistenceError, RegistrationError
from warzone.core.missions import FIRST_LEVEL, MAX_LEVEL

logger = logging.getLogger(__name__)

STARTER_LOADOUT = ("Pistol",)
ADMIN_LOADOUT = ("AK-47", "M4A1", "AWP", "Desert Eagle")
ADMIN_EMAIL = "admin@warzone.local"

PASSWORD_SCHEME = "pbkdf2_sha256"
PASSWORD_ITERATIONS = 100_000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Encode *password* as ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``."""
    salt = salt if salt is not None else secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PASSWORD_ITERATIONS
    )
    return f"{PASSWORD_SCHEME}${PASSWORD_ITERATIONS}${salt}${digest.hex()}"


def is_password_hashed(encoded: str) -> bool:
    return encoded.startswith(PASSWORD_SCHEME + "$")


def verify_password(password: str, encoded: str) -> bool:
    """Check *password* against a value produced by :func:`hash_password`.

    Values without the scheme prefix are plaintext from older account files
    and are compared directly.
    """
    if not is_password_hashed(encoded):
        return hmac.compare_digest(password.encode("utf-8"), encoded.encode("utf-8"))
    parts = encoded.split("$")
    if len(parts) != 4:
        return False
    _, iterations, salt, expected = parts
    try:
        rounds = int(iterations)
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), rounds)
    return hmac.compare_digest(digest.hex(), expected)


@dataclass
class Player:
    """One account. ``password`` holds the encoded digest from :func:`hash_password`."""

    nickname: str
    password: str
    email: str = ""
    level: int = FIRST_LEVEL
    loadout: Set[str] = field(default_factory=lambda: set(STARTER_LOADOUT))
    allies: Set[str] = field(default_factory=set)
    is_admin: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nickname": self.nickname,
            "password": self.password,
            "email": self.email,
            "level": self.level,
            "loadout": sorted(self.loadout),
            "allies": sorted(self.allies),
            "is_admin": self.is_admin,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        level = int(data.get("level", FIRST_LEVEL))
        return cls(
            nickname=str(data["nickname"]),
            password=str(data.get("password", "")),
            email=str(data.get("email", "")),
            level=max(FIRST_LEVEL, min(MAX_LEVEL, level)),
            loadout=set(data.get("loadout", STARTER_LOADOUT)),
            allies=set(data.get("allies", [])),
            is_admin=bool(data.get("is_admin", False)),
        )


def default_accounts_path() -> Path:
    home = os.environ.get("WARZONE_HOME")
    base = Path(home) if home else Path.home() / ".warzone"
    return base / "accounts.json"


class AccountStore:
    """Player records and the signed-in player, kept in one JSON file.

    File: $WARZONE_HOME/accounts.json, or ~/.warzone/accounts.json.
    Unreadable files are treated as empty; failed writes raise
    ``PersistenceError``.
    """

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = file_path if file_path is not None else default_accounts_path()
        self._users, current = self._load()
        self._current: Optional[str] = current if current in self._users else None

    @property
    def file_path(self) -> Path:
        return self._file_path

    def players(self) -> List[Player]:
        return list(self._users.values())

    def find(self, nickname: str) -> Optional[Player]:
        return self._users.get(nickname)

    def read_current_player(self) -> Optional[Player]:
        if self._current is None:
            return None
        return self._users.get(self._current)

    def write_player(self, player: Player) -> None:
        """Upsert *player* by nickname and make them the signed-in player."""
        self._users[player.nickname] = player
        self._current = player.nickname
        self._save()

    def register(self, email: str, nickname: str, password: str) -> Player:
        email, nickname = email.strip(), nickname.strip()
        if not email or not nickname or not password:
            raise RegistrationError("Email, nickname and password are all required")
        if nickname in self._users or nickname == _admin_credentials()[0]:
            raise RegistrationError(f"Nickname {nickname!r} is already taken")
        player = Player(nickname=nickname, password=hash_password(password), email=email)
        self.write_player(player)
        logger.info("Registered player %s", nickname)
        return player

    def login(self, nickname: str, password: str) -> Player:
        admin_login, admin_password = _admin_credentials()
        if (
            admin_login
            and admin_password
            and nickname == admin_login
            and hmac.compare_digest(password.encode("utf-8"), admin_password.encode("utf-8"))
        ):
            admin = self._users.get(nickname) or Player(
                nickname=nickname,
                password=hash_password(password),
                email=ADMIN_EMAIL,
                level=MAX_LEVEL,
                loadout=set(ADMIN_LOADOUT),
                is_admin=True,
            )
            self.write_player(admin)
            logger.info("Administrator %s signed in", nickname)
            return admin

        player = self._users.get(nickname)
        if player is None or not verify_password(password, player.password):
            raise AuthenticationError("Wrong nickname or password")
        if not is_password_hashed(player.password):
            player.password = hash_password(password)
        self._current = player.nickname
        self._save()
        logger.info("Player %s signed in", nickname)
        return player

    def logout(self) -> None:
        self._current = None
        self._save()

    def _load(self) -> tuple[Dict[str, Player], Optional[str]]:
        users: Dict[str, Player] = {}
        if not self._file_path.exists():
            return users, None
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load accounts from %s: %s", self._file_path, e)
            return users, None
        if not isinstance(payload, dict):
            logger.warning("Ignoring malformed accounts file %s", self._file_path)
            return users, None

        for raw in payload.get("users", []):
            try:
                player = Player.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed player record in %s: %s", self._file_path, e)
                continue
            users[player.nickname] = player
        current = payload.get("current_user")
        return users, current if isinstance(current, str) else None

    def _save(self) -> None:
        payload = {
            "users": [p.to_dict() for p in self._users.values()],
            "current_user": self._current,
        }
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".accounts-", suffix=".tmp", dir=str(self._file_path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self._file_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.warning("Could not save accounts to %s: %s", self._file_path, e)
            raise PersistenceError(f"Could not save accounts to {self._file_path}: {e}") from e


def _admin_credentials() -> tuple[str, str]:
    """Admin login and password; the admin account exists only when both are set."""
    return os.environ.get("WARZONE_ADMIN_LOGIN", ""), os.environ.get("WARZONE_ADMIN_PASSWORD", "")
