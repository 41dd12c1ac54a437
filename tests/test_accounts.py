"""Tests for warzone.core.accounts – player records and JSON persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from warzone.core.accounts import (
    ADMIN_LOADOUT,
    AccountStore,
    Player,
    default_accounts_path,
    hash_password,
    verify_password,
)
from warzone.core.errors import AuthenticationError, PersistenceError, RegistrationError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _no_admin(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WARZONE_ADMIN_LOGIN", raising=False)
    monkeypatch.delenv("WARZONE_ADMIN_PASSWORD", raising=False)


@pytest.fixture()
def accounts_file(tmp_path: Path) -> Path:
    return tmp_path / "accounts.json"


@pytest.fixture()
def store(accounts_file: Path) -> AccountStore:
    """AccountStore backed by a temp file so tests don't touch ~/.warzone."""
    return AccountStore(file_path=accounts_file)


# ---------------------------------------------------------------------------
# Player dataclass
# ---------------------------------------------------------------------------

class TestPlayer:
    def test_defaults(self):
        p = Player(nickname="ghost", password="pw")
        assert p.level == 1
        assert p.loadout == {"Pistol"}
        assert p.allies == set()
        assert p.is_admin is False

    def test_to_dict_sorts_sets(self):
        p = Player(nickname="ghost", password="pw", loadout={"MP5", "AK-47"}, allies={"zed", "amy"})
        d = p.to_dict()
        assert d["loadout"] == ["AK-47", "MP5"]
        assert d["allies"] == ["amy", "zed"]

    def test_from_dict_roundtrip(self):
        p = Player(nickname="ghost", password="pw", email="g@x", level=4, allies={"amy"})
        assert Player.from_dict(p.to_dict()) == p

    def test_from_dict_clamps_level(self):
        assert Player.from_dict({"nickname": "a", "level": 42}).level == 10
        assert Player.from_dict({"nickname": "a", "level": -3}).level == 1

    def test_from_dict_requires_nickname(self):
        with pytest.raises(KeyError):
            Player.from_dict({"password": "pw"})


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHash:
    def test_salted(self):
        assert hash_password("pw") != hash_password("pw")

    def test_same_salt_same_digest(self):
        assert hash_password("pw", salt="abc") == hash_password("pw", salt="abc")

    def test_verify(self):
        encoded = hash_password("pw")
        assert verify_password("pw", encoded)
        assert not verify_password("PW", encoded)

    def test_malformed_digest_rejected(self):
        assert not verify_password("pw", "pbkdf2_sha256$many$abc$00")
        assert not verify_password("pw", "pbkdf2_sha256$broken")


# ---------------------------------------------------------------------------
# Storage location
# ---------------------------------------------------------------------------

class TestDefaultPath:
    def test_uses_warzone_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("WARZONE_HOME", str(tmp_path))
        assert default_accounts_path() == tmp_path / "accounts.json"

    def test_falls_back_to_home(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("WARZONE_HOME", raising=False)
        assert default_accounts_path() == Path.home() / ".warzone" / "accounts.json"


# ---------------------------------------------------------------------------
# Current player contract
# ---------------------------------------------------------------------------

class TestCurrentPlayer:
    def test_fresh_store_has_nobody(self, store: AccountStore):
        assert store.read_current_player() is None
        assert store.players() == []

    def test_write_player_upserts_and_selects(self, store: AccountStore):
        p = Player(nickname="ghost", password="pw")
        store.write_player(p)
        assert store.read_current_player() is p
        p.level = 3
        store.write_player(p)
        assert len(store.players()) == 1
        assert store.read_current_player().level == 3

    def test_write_persists_to_disk(self, store: AccountStore, accounts_file: Path):
        store.write_player(Player(nickname="ghost", password="pw", level=2))
        data = json.loads(accounts_file.read_text(encoding="utf-8"))
        assert data["current_user"] == "ghost"
        assert data["users"][0]["level"] == 2

    def test_reload_restores_current(self, store: AccountStore, accounts_file: Path):
        store.write_player(Player(nickname="ghost", password="pw", level=5))
        reloaded = AccountStore(file_path=accounts_file)
        assert reloaded.read_current_player() == Player(nickname="ghost", password="pw", level=5)

    def test_creates_parent_directory(self, tmp_path: Path):
        s = AccountStore(file_path=tmp_path / "deep" / "dir" / "accounts.json")
        s.write_player(Player(nickname="ghost", password="pw"))
        assert (tmp_path / "deep" / "dir" / "accounts.json").exists()

    def test_no_temp_files_left_behind(self, store: AccountStore, accounts_file: Path):
        store.write_player(Player(nickname="ghost", password="pw"))
        assert [p.name for p in accounts_file.parent.iterdir()] == ["accounts.json"]

    def test_write_failure_raises(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        s = AccountStore(file_path=blocker / "accounts.json")
        with pytest.raises(PersistenceError):
            s.write_player(Player(nickname="ghost", password="pw"))


# ---------------------------------------------------------------------------
# Registration and sign-in
# ---------------------------------------------------------------------------

class TestRegister:
    def test_new_player_defaults(self, store: AccountStore):
        p = store.register("g@front.io", "ghost", "pw")
        assert p.level == 1
        assert p.loadout == {"Pistol"}
        assert p.email == "g@front.io"
        assert store.read_current_player() is p

    @pytest.mark.parametrize(
        "email,nickname,password",
        [("", "ghost", "pw"), ("g@x", "", "pw"), ("g@x", "ghost", ""), ("  ", "ghost", "pw")],
    )
    def test_all_fields_required(self, store: AccountStore, email, nickname, password):
        with pytest.raises(RegistrationError):
            store.register(email, nickname, password)
        assert store.players() == []

    def test_duplicate_nickname(self, store: AccountStore):
        store.register("a@x", "ghost", "pw")
        with pytest.raises(RegistrationError, match="taken"):
            store.register("b@x", "ghost", "other")


class TestLogin:
    def test_login_selects_player(self, store: AccountStore, accounts_file: Path):
        store.register("a@x", "ghost", "pw")
        store.register("b@x", "viper", "pw2")
        p = store.login("ghost", "pw")
        assert p.nickname == "ghost"
        assert AccountStore(file_path=accounts_file).read_current_player().nickname == "ghost"

    def test_wrong_password(self, store: AccountStore):
        store.register("a@x", "ghost", "pw")
        with pytest.raises(AuthenticationError):
            store.login("ghost", "nope")

    def test_unknown_nickname(self, store: AccountStore):
        with pytest.raises(AuthenticationError):
            store.login("nobody", "pw")

    def test_password_not_stored_in_plaintext(self, store: AccountStore, accounts_file: Path):
        store.register("a@x", "ghost", "hunter2")
        raw = accounts_file.read_text(encoding="utf-8")
        assert "hunter2" not in raw
        stored = json.loads(raw)["users"][0]["password"]
        assert stored.startswith("pbkdf2_sha256$")
        assert AccountStore(file_path=accounts_file).login("ghost", "hunter2").nickname == "ghost"

    def test_plaintext_record_upgraded_on_login(self, accounts_file: Path):
        accounts_file.write_text(
            json.dumps({"users": [{"nickname": "ghost", "password": "pw"}], "current_user": None}),
            encoding="utf-8",
        )
        s = AccountStore(file_path=accounts_file)
        s.login("ghost", "pw")
        stored = json.loads(accounts_file.read_text(encoding="utf-8"))["users"][0]["password"]
        assert stored != "pw"
        assert verify_password("pw", stored)

    def test_logout(self, store: AccountStore, accounts_file: Path):
        store.register("a@x", "ghost", "pw")
        store.logout()
        assert store.read_current_player() is None
        assert store.find("ghost") is not None
        assert AccountStore(file_path=accounts_file).read_current_player() is None


class TestAdmin:
    def test_admin_disabled_without_env(self, store: AccountStore):
        with pytest.raises(AuthenticationError):
            store.login("", "")

    def test_admin_login(self, store: AccountStore, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("WARZONE_ADMIN_LOGIN", "chief")
        monkeypatch.setenv("WARZONE_ADMIN_PASSWORD", "s3cret")
        admin = store.login("chief", "s3cret")
        assert admin.is_admin
        assert admin.level == 10
        assert admin.loadout == set(ADMIN_LOADOUT)
        assert store.read_current_player() is admin

    def test_admin_wrong_password(self, store: AccountStore, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("WARZONE_ADMIN_LOGIN", "chief")
        monkeypatch.setenv("WARZONE_ADMIN_PASSWORD", "s3cret")
        with pytest.raises(AuthenticationError):
            store.login("chief", "guess")

    def test_admin_disabled_without_password(self, store: AccountStore, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("WARZONE_ADMIN_LOGIN", "chief")
        with pytest.raises(AuthenticationError):
            store.login("chief", "")
        assert store.read_current_player() is None

    def test_admin_nickname_reserved(self, store: AccountStore, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("WARZONE_ADMIN_LOGIN", "chief")
        monkeypatch.setenv("WARZONE_ADMIN_PASSWORD", "s3cret")
        with pytest.raises(RegistrationError):
            store.register("c@x", "chief", "pw")


# ---------------------------------------------------------------------------
# Loading edge cases
# ---------------------------------------------------------------------------

class TestLoadEdgeCases:
    def test_corrupt_json(self, accounts_file: Path):
        accounts_file.write_text("NOT VALID JSON", encoding="utf-8")
        s = AccountStore(file_path=accounts_file)
        assert s.players() == []
        assert s.read_current_player() is None

    def test_payload_not_dict(self, accounts_file: Path):
        accounts_file.write_text("[1, 2]", encoding="utf-8")
        assert AccountStore(file_path=accounts_file).players() == []

    def test_malformed_record_skipped(self, accounts_file: Path):
        accounts_file.write_text(
            json.dumps({"users": [{"password": "x"}, {"nickname": "ghost", "level": 3}], "current_user": "ghost"}),
            encoding="utf-8",
        )
        s = AccountStore(file_path=accounts_file)
        assert [p.nickname for p in s.players()] == ["ghost"]
        assert s.read_current_player().level == 3

    def test_dangling_current_user(self, accounts_file: Path):
        accounts_file.write_text(json.dumps({"users": [], "current_user": "ghost"}), encoding="utf-8")
        assert AccountStore(file_path=accounts_file).read_current_player() is None
