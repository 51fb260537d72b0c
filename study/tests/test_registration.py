import pytest

from config.settings import StudyConfig
from data.errors import StoreError
from data.profile_store import ProfileStore
import main
from main import register_user


@pytest.fixture
def store(tmp_path):
    return ProfileStore(str(tmp_path / "profiles.json"))


class TestRegisterUser:
    def test_creates_profile(self, store):
        user = register_user(store, "cat_fan", "G4", "a@b.c", 30, "Student")
        assert user.group == "G4"
        assert store.get_level("cat_fan", "g4_nback") == 1

    def test_rejects_incomplete_form(self, store):
        with pytest.raises(ValueError):
            register_user(store, "cat_fan", "G4", "", 30, "Student")

    def test_rejects_unknown_group(self, store):
        with pytest.raises(ValueError):
            register_user(store, "cat_fan", "G9", "a@b.c", 30, "Student")

    def test_rejects_demographics(self, store):
        with pytest.raises(ValueError, match="age_out_of_range"):
            register_user(store, "cat_fan", "G4", "a@b.c", 12, "Student")

    def test_rejects_full_group(self, store):
        study = StudyConfig(max_per_group=2)
        register_user(store, "u1", "G2", "a@b.c", 30, "Student", study)
        register_user(store, "u2", "G2", "a@b.c", 30, "Student", study)
        with pytest.raises(ValueError, match="full"):
            register_user(store, "u3", "G2", "a@b.c", 30, "Student", study)
        assert store.count_group("G2") == 2


class TestMainStartup:
    def test_level_read_failure_exits_cleanly(self, tmp_path, monkeypatch, caplog):
        monkeypatch.setenv("COGTRAIN_DATA_DIR", str(tmp_path))
        ProfileStore(str(tmp_path / "profiles.json")).create_user("cat_fan", "G4")

        def broken_get_level(self, user_id, task_key, default=1):
            raise StoreError("malformed profile file")

        monkeypatch.setattr(main.ProfileStore, "get_level", broken_get_level)
        assert main.main(["nback", "--user", "cat_fan"]) == 2
        assert "Cannot start session for cat_fan" in caplog.text
