"""Unit tests for profile_store module."""

import os
import stat
from unittest.mock import patch

import pytest

from yaccs.config_manager import ConfigError, ConfigManager
from yaccs.errors import (
    ActiveMarkerError,
    InvalidNameError,
    ProfileExistsError,
    ProfileFormatError,
    ProfileNotFoundError,
    StoreInitError,
    StoreIOError,
    ValidationError,
)
from yaccs.profile_codec import STANDARD_VARS, encode
from yaccs.profile_store import (
    ProfileChanges,
    ProfileStore,
    profile_diff,
    validate_profile_name,
)


def file_mode(path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class TestValidateProfileName:
    """Tests for provider name validation."""

    def test_valid_names(self):
        """Test typical provider names."""
        validate_profile_name("glm")  # Should not raise
        validate_profile_name("open-router_2")  # Should not raise
        validate_profile_name("Kimi K2")  # Should not raise

    @pytest.mark.parametrize("name", ["a/b", "a\\b", "a\x00b", "a\nb"])
    def test_separators_rejected(self, name):
        """Test names that could escape the providers directory."""
        with pytest.raises(InvalidNameError, match="Invalid provider name"):
            validate_profile_name(name)

    def test_empty_rejected(self):
        """Test empty name."""
        with pytest.raises(InvalidNameError, match="cannot be empty"):
            validate_profile_name("")

    def test_leading_dot_rejected(self):
        """Test hidden names (used for temporary files)."""
        with pytest.raises(InvalidNameError, match="cannot start with"):
            validate_profile_name(".hidden")


class TestStoreRoot:
    """Tests for store directory creation."""

    def test_root_created_lazily(self, store, store_root):
        """Test that constructing a store touches nothing."""
        assert not store_root.exists()
        store.ensure_root()
        assert store_root.is_dir()
        assert (store_root / "providers").is_dir()

    def test_root_permissions(self, store, store_root):
        """Test owner-only directory permissions."""
        store.ensure_root()
        assert file_mode(store_root) == 0o700
        assert file_mode(store_root / "providers") == 0o700

    def test_uncreatable_root(self, tmp_path):
        """Test a root below a regular file."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = ProfileStore(blocker / "root")

        with pytest.raises(StoreInitError, match="Failed to create directory"):
            store.ensure_root()

    def test_default_root_refused_in_test_mode(self):
        """Test that tests can never touch the real ~/.yaccs."""
        store = ProfileStore(ConfigManager.default_root())
        with pytest.raises(ConfigError, match="Cannot use the default"):
            store.ensure_root()


class TestCreateAndRead:
    """Tests for writing and reading profiles."""

    def test_create_and_read(self, store, glm_profile):
        """Test basic round trip through the store."""
        store.create("glm", glm_profile)
        assert store.read("glm") == glm_profile

    def test_file_location_and_permissions(self, store, store_root, glm_profile):
        """Test providers/<name>.sh with mode 0600."""
        path = store.create("glm", glm_profile)
        assert path == store_root / "providers" / "glm.sh"
        assert file_mode(path) == 0o600
        assert path.read_text() == encode(glm_profile)

    def test_no_temp_files_left(self, store, store_root, glm_profile):
        """Test that atomic writes clean up after themselves."""
        store.create("glm", glm_profile)
        store.write("glm", glm_profile)
        assert [p.name for p in (store_root / "providers").iterdir()] == ["glm.sh"]

    def test_create_existing_rejected(self, store, glm_profile):
        """Test create without overwrite on a taken name."""
        store.create("glm", glm_profile)
        with pytest.raises(ProfileExistsError, match="already exists"):
            store.create("glm", glm_profile)

    def test_create_existing_with_overwrite(self, store, make_profile):
        """Test create with overwrite replaces the profile."""
        store.create("glm", make_profile(main="m1"))
        store.create("glm", make_profile(main="m2"), overwrite=True)
        assert store.read("glm").models.main == "m2"

    def test_write_name_mismatch(self, store, glm_profile):
        """Test writing a profile under a different name."""
        with pytest.raises(ValidationError, match="does not match"):
            store.write("other", glm_profile)

    def test_read_missing(self, store):
        """Test reading an unknown profile."""
        with pytest.raises(ProfileNotFoundError, match="Provider 'nope' not configured"):
            store.read("nope")

    def test_read_invalid_name(self, store):
        """Test that names are validated before touching the filesystem."""
        with pytest.raises(InvalidNameError):
            store.read("../etc/passwd")

    def test_read_corrupt_file(self, store, store_root):
        """Test decoding a file missing required fields."""
        store.ensure_root()
        (store_root / "providers" / "broken.sh").write_text('export ANTHROPIC_MODEL="m1"\n')
        with pytest.raises(ProfileFormatError, match="missing required field"):
            store.read("broken")

    def test_insecure_permissions_fixed_on_read(self, store, glm_profile):
        """Test that a world-readable profile is tightened."""
        path = store.create("glm", glm_profile)
        os.chmod(path, 0o644)

        store.read("glm")

        assert file_mode(path) == 0o600

    def test_failed_write_keeps_previous_content(self, store, make_profile):
        """Test that an interrupted write leaves the old file intact."""
        path = store.create("glm", make_profile(main="m1"))
        before = path.read_bytes()

        with patch("yaccs.profile_store.os.fsync", side_effect=OSError("disk full")):
            with pytest.raises(StoreIOError, match="disk full"):
                store.write("glm", make_profile(main="m2"))

        assert path.read_bytes() == before
        assert [p.name for p in path.parent.iterdir()] == ["glm.sh"]


class TestListing:
    """Tests for profile listing."""

    def test_empty(self, store):
        """Test listing an empty store."""
        assert list(store.list()) == []

    def test_sorted_names(self, store, make_profile):
        """Test lexicographic order."""
        for name in ("zai", "glm", "openrouter"):
            store.create(name, make_profile(name=name))
        assert store.list().names() == ["glm", "openrouter", "zai"]

    def test_active_flag(self, store, make_profile):
        """Test that exactly the active profile is flagged."""
        for name in ("glm", "openrouter"):
            store.create(name, make_profile(name=name))
        store.set_active("openrouter")

        flags = {entry.name: entry.active for entry in store.list()}
        assert flags == {"glm": False, "openrouter": True}

    def test_listing_is_restartable(self, store, make_profile):
        """Test iterating the same listing twice sees new files."""
        store.create("glm", make_profile())
        listing = store.list()
        assert listing.names() == ["glm"]

        store.create("chutes", make_profile(name="chutes"))

        assert listing.names() == ["chutes", "glm"]
        assert listing.names() == ["chutes", "glm"]

    def test_ignores_other_files(self, store, store_root, make_profile):
        """Test that non-profile files are not listed."""
        store.create("glm", make_profile())
        providers = store_root / "providers"
        (providers / "notes.txt").write_text("x")
        (providers / ".glm.sh.tmp").write_text("x")
        (providers / "subdir.sh").mkdir()

        assert store.list().names() == ["glm"]


class TestRename:
    """Tests for renaming profiles."""

    def test_rename(self, store, glm_profile):
        """Test simple rename."""
        store.create("glm", glm_profile)
        store.rename("glm", "zhipu")

        assert not store.exists("glm")
        assert store.read("zhipu").base_url == "https://x"

    def test_rename_moves_active_marker(self, store, glm_profile):
        """Test that the active marker follows the profile."""
        store.create("glm", glm_profile)
        store.set_active("glm")

        store.rename("glm", "zhipu")

        assert store.get_active() == "zhipu"

    def test_rename_inactive_keeps_marker(self, store, make_profile):
        """Test that renaming another profile leaves the marker alone."""
        store.create("glm", make_profile())
        store.create("chutes", make_profile(name="chutes"))
        store.set_active("chutes")

        store.rename("glm", "zhipu")

        assert store.get_active() == "chutes"

    def test_rename_missing(self, store):
        """Test renaming an unknown profile."""
        with pytest.raises(ProfileNotFoundError):
            store.rename("nope", "other")

    def test_rename_conflict(self, store, make_profile):
        """Test renaming onto an existing profile."""
        store.create("glm", make_profile(main="m1"))
        store.create("zhipu", make_profile(name="zhipu", main="m2"))

        with pytest.raises(ProfileExistsError, match="already exists"):
            store.rename("glm", "zhipu")

        assert store.read("glm").models.main == "m1"
        assert store.read("zhipu").models.main == "m2"

    def test_rename_conflict_with_overwrite(self, store, make_profile):
        """Test confirmed overwrite on rename."""
        store.create("glm", make_profile(main="m1"))
        store.create("zhipu", make_profile(name="zhipu", main="m2"))

        store.rename("glm", "zhipu", overwrite=True)

        assert store.list().names() == ["zhipu"]
        assert store.read("zhipu").models.main == "m1"

    def test_rename_reverted_when_marker_write_fails(self, store, glm_profile):
        """Test that a failed marker update undoes the move."""
        store.create("glm", glm_profile)
        store.set_active("glm")

        with patch.object(store, "_write_active", side_effect=StoreIOError("boom")):
            with pytest.raises(StoreIOError, match="boom"):
                store.rename("glm", "zhipu")

        assert store.exists("glm")
        assert not store.exists("zhipu")
        assert store.get_active() == "glm"

    def test_rename_space_padded_active(self, store, make_profile):
        """Test that the marker follows a name with surrounding spaces."""
        store.create(" glm", make_profile(name=" glm"))
        store.set_active(" glm")

        store.rename(" glm", "zhipu ")

        assert store.get_active() == "zhipu "


class TestRemove:
    """Tests for removing profiles."""

    def test_remove(self, store, glm_profile):
        """Test removing a profile."""
        store.create("glm", glm_profile)
        store.remove("glm")
        assert not store.exists("glm")

    def test_remove_active_clears_marker(self, store, store_root, glm_profile):
        """Test that removing the active profile clears the marker."""
        store.create("glm", glm_profile)
        store.set_active("glm")

        store.remove("glm")

        assert store.get_active() is None
        assert not (store_root / "active").exists()

    def test_remove_inactive_keeps_marker(self, store, make_profile):
        """Test removing another profile."""
        store.create("glm", make_profile())
        store.create("chutes", make_profile(name="chutes"))
        store.set_active("glm")

        store.remove("chutes")

        assert store.get_active() == "glm"

    def test_remove_space_padded_active_clears_marker(self, store, make_profile):
        """Test removing an active profile whose name ends with a space."""
        store.create("glm ", make_profile(name="glm "))
        store.set_active("glm ")

        store.remove("glm ")

        assert store.get_active() is None

    def test_remove_missing(self, store):
        """Test removing an unknown profile."""
        with pytest.raises(ProfileNotFoundError):
            store.remove("nope")


class TestActiveMarker:
    """Tests for the active marker."""

    def test_no_marker(self, store):
        """Test fresh store has no active profile."""
        assert store.get_active() is None
        assert store.get_active_profile() is None

    def test_set_active(self, store, store_root, glm_profile):
        """Test marker content and permissions."""
        store.create("glm", glm_profile)
        store.set_active("glm")

        assert (store_root / "active").read_text() == "glm\n"
        assert file_mode(store_root / "active") == 0o600
        assert store.get_active() == "glm"

    def test_set_active_missing(self, store):
        """Test activating an unknown profile."""
        with pytest.raises(ProfileNotFoundError):
            store.set_active("nope")

    def test_empty_marker_means_none(self, store, store_root):
        """Test blank marker file."""
        store.ensure_root()
        (store_root / "active").write_text("\n")
        assert store.get_active() is None

    def test_stale_marker(self, store, store_root):
        """Test marker naming a deleted profile."""
        store.ensure_root()
        (store_root / "active").write_text("ghost\n")

        assert store.get_active() == "ghost"
        with pytest.raises(ActiveMarkerError, match="Active provider 'ghost' config not found"):
            store.get_active_profile()

    def test_invalid_marker_name(self, store, store_root):
        """Test hand-edited marker that is not a valid provider name."""
        store.ensure_root()
        (store_root / "active").write_text("../evil\n")

        with pytest.raises(ActiveMarkerError, match="Active provider '../evil' config not found"):
            store.get_active_profile()

    @pytest.mark.parametrize("name", [" glm", "glm ", " glm "])
    def test_marker_keeps_surrounding_spaces(self, store, make_profile, name):
        """Test names with leading or trailing spaces survive the marker."""
        store.create(name, make_profile(name=name))
        store.set_active(name)

        assert store.get_active() == name
        assert [entry.active for entry in store.list()] == [True]
        assert store.get_active_profile().name == name

    def test_clear_active_without_marker(self, store):
        """Test clearing when nothing is active."""
        store.clear_active()  # Should not raise
        assert store.get_active() is None


class TestProfileChanges:
    """Tests for batched field changes."""

    def test_empty(self):
        """Test change set with nothing selected."""
        assert ProfileChanges().is_empty()
        assert not ProfileChanges(base_url="https://y").is_empty()

    def test_uniform_tiers_follow_new_main(self, glm_profile):
        """Test that tiers using the old main model follow the new one."""
        updated = ProfileChanges(main_model="m2").apply_to(glm_profile)
        assert updated.models.main == "m2"
        assert updated.models.haiku == updated.models.opus == updated.models.small_fast == "m2"

    def test_custom_tiers_kept(self, make_profile):
        """Test that an explicit tier survives a main model change."""
        profile = make_profile(haiku="h1")
        updated = ProfileChanges(main_model="m2").apply_to(profile)
        assert updated.models.haiku == "h1"
        assert updated.models.sonnet == "m2"

    def test_explicit_tier_change(self, glm_profile):
        """Test changing one tier only."""
        updated = ProfileChanges(opus_model="o1").apply_to(glm_profile)
        assert updated.models.opus == "o1"
        assert updated.models.main == "m1"

    def test_original_untouched(self, glm_profile):
        """Test that apply_to returns a new profile."""
        ProfileChanges(base_url="https://y").apply_to(glm_profile)
        assert glm_profile.base_url == "https://x"

    def test_invalid_batch(self, glm_profile):
        """Test that one bad field rejects the whole batch."""
        with pytest.raises(ValidationError):
            ProfileChanges(base_url="https://y", api_key="").apply_to(glm_profile)

    def test_invalid_new_name(self, glm_profile):
        """Test rename to an invalid name."""
        with pytest.raises(InvalidNameError):
            ProfileChanges(name="a/b").apply_to(glm_profile)

    def test_custom_vars_carried_over(self, make_profile):
        """Test that field changes keep custom variables."""
        profile = make_profile(custom_vars={"DISABLE_PROMPT_CACHING": "1"})
        updated = ProfileChanges(base_url="https://y").apply_to(profile)
        assert updated.custom_vars == {"DISABLE_PROMPT_CACHING": "1"}

    def test_profile_diff(self, glm_profile):
        """Test diff lists only changed fields, in display order."""
        updated = ProfileChanges(base_url="https://y", main_model="m2").apply_to(glm_profile)
        labels = [label for label, _old, _new in profile_diff(glm_profile, updated)]
        assert labels == [
            "Base URL",
            "Main Model",
            "Haiku Model",
            "Sonnet Model",
            "Opus Model",
            "Subagent Model",
            "Small/Fast Model",
        ]


class TestUpdate:
    """Tests for ProfileStore.update."""

    def test_update_fields(self, store, glm_profile):
        """Test changing several fields at once."""
        store.create("glm", glm_profile)

        store.update("glm", ProfileChanges(base_url="https://y", api_key="sk_456"))

        profile = store.read("glm")
        assert profile.base_url == "https://y"
        assert profile.api_key == "sk_456"
        assert profile.models.main == "m1"

    def test_invalid_update_writes_nothing(self, store, glm_profile):
        """Test that a rejected batch leaves the file byte-identical."""
        path = store.create("glm", glm_profile)
        before = path.read_bytes()

        with pytest.raises(ValidationError):
            store.update("glm", ProfileChanges(base_url="https://y", main_model=""))

        assert path.read_bytes() == before

    def test_update_keeps_custom_vars(self, store, make_profile):
        """Test that standard edits preserve the custom section."""
        store.create("glm", make_profile(custom_vars={"DISABLE_PROMPT_CACHING": "1"}))
        store.update("glm", ProfileChanges(main_model="m2"))
        assert store.list_custom_vars("glm") == {"DISABLE_PROMPT_CACHING": "1"}

    def test_update_with_rename(self, store, glm_profile):
        """Test rename and field change in one step."""
        store.create("glm", glm_profile)
        store.set_active("glm")

        updated = store.update("glm", ProfileChanges(name="zhipu", main_model="m2"))

        assert updated.name == "zhipu"
        assert store.list().names() == ["zhipu"]
        assert store.read("zhipu").models.main == "m2"
        assert store.get_active() == "zhipu"

    def test_update_rename_conflict(self, store, make_profile):
        """Test rename onto an existing profile without overwrite."""
        store.create("glm", make_profile())
        store.create("zhipu", make_profile(name="zhipu", main="z1"))

        with pytest.raises(ProfileExistsError):
            store.update("glm", ProfileChanges(name="zhipu"))

        assert store.read("zhipu").models.main == "z1"
        assert store.exists("glm")

    def test_update_rename_rolls_back(self, store, glm_profile):
        """Test that a failed marker update leaves the original in place."""
        store.create("glm", glm_profile)
        store.set_active("glm")

        with patch.object(store, "_write_active", side_effect=[StoreIOError("boom"), None]):
            with pytest.raises(StoreIOError, match="Failed to rename"):
                store.update("glm", ProfileChanges(name="zhipu"))

        assert store.list().names() == ["glm"]

    def test_update_rename_reports_original_error(self, store, glm_profile):
        """Test that a failed marker restore does not hide the first failure."""
        store.create("glm", glm_profile)
        store.set_active("glm")

        with patch.object(store, "_write_active", side_effect=StoreIOError("boom")):
            with pytest.raises(StoreIOError, match="Failed to rename provider 'glm' to 'zhipu': boom"):
                store.update("glm", ProfileChanges(name="zhipu"))

        assert store.list().names() == ["glm"]

    def test_update_missing(self, store):
        """Test updating an unknown profile."""
        with pytest.raises(ProfileNotFoundError):
            store.update("nope", ProfileChanges(base_url="https://y"))


class TestActivation:
    """Tests for activate/deactivate projections."""

    def test_activate_from_default(self, store, glm_profile):
        """Test first activation."""
        store.create("glm", glm_profile)

        projection = store.activate("glm")

        assert store.get_active() == "glm"
        assert projection.to_unset == frozenset(STANDARD_VARS)
        assert projection.to_apply == glm_profile.to_env()
        assert projection.stale_custom == frozenset()

    def test_switch_clears_previous_custom_vars(self, store, make_profile):
        """Test that custom variables of the previous profile are unset."""
        store.create("glm", make_profile(custom_vars={"DISABLE_PROMPT_CACHING": "1"}))
        store.create("openrouter", make_profile(name="openrouter"))
        store.activate("glm")

        projection = store.activate("openrouter")

        assert "DISABLE_PROMPT_CACHING" in projection.to_unset
        assert "DISABLE_PROMPT_CACHING" not in projection.to_apply
        assert projection.stale_custom == frozenset({"DISABLE_PROMPT_CACHING"})

    def test_reactivate_same_profile(self, store, make_profile):
        """Test that re-activating does not mark own variables stale."""
        store.create("glm", make_profile(custom_vars={"DISABLE_PROMPT_CACHING": "1"}))
        store.activate("glm")

        projection = store.activate("glm")

        assert projection.stale_custom == frozenset()
        assert projection.to_apply["DISABLE_PROMPT_CACHING"] == "1"

    def test_activate_missing_keeps_marker(self, store, glm_profile):
        """Test that a failed activation changes nothing."""
        store.create("glm", glm_profile)
        store.set_active("glm")

        with pytest.raises(ProfileNotFoundError):
            store.activate("nope")

        assert store.get_active() == "glm"

    def test_stale_marker_ignored_on_activate(self, store, store_root, glm_profile):
        """Test switching away from a deleted profile."""
        store.create("glm", glm_profile)
        (store_root / "active").write_text("ghost\n")

        projection = store.activate("glm")

        assert projection.stale_custom == frozenset()
        assert store.get_active() == "glm"

    def test_invalid_marker_ignored_on_activate(self, store, store_root, glm_profile):
        """Test switching when the marker holds an invalid provider name."""
        store.create("glm", glm_profile)
        (store_root / "active").write_text("../evil\n")

        projection = store.activate("glm")

        assert projection.stale_custom == frozenset()
        assert store.get_active() == "glm"

    def test_invalid_marker_ignored_on_deactivate(self, store, store_root):
        """Test reset when the marker holds an invalid provider name."""
        store.ensure_root()
        (store_root / "active").write_text("../evil\n")

        projection = store.deactivate()

        assert projection.to_unset == frozenset(STANDARD_VARS)
        assert store.get_active() is None

    def test_previous_missing_standard_field(self, store, store_root, make_profile):
        """Test custom variables cleared when the previous file lacks a required field."""
        store.create("old", make_profile(name="old", custom_vars={"DISABLE_PROMPT_CACHING": "1"}))
        store.create("glm", make_profile())
        store.set_active("old")
        path = store_root / "providers" / "old.sh"
        lines = path.read_text().split("\n")
        path.write_text("\n".join(line for line in lines if "ANTHROPIC_MODEL=" not in line))

        projection = store.activate("glm")

        assert "DISABLE_PROMPT_CACHING" in projection.to_unset
        assert projection.stale_custom == frozenset({"DISABLE_PROMPT_CACHING"})

    def test_previous_with_hand_edited_reserved_name(self, store, store_root, make_profile):
        """Test a reserved name typed into the custom section by hand."""
        store.create("old", make_profile(name="old", custom_vars={"DISABLE_PROMPT_CACHING": "1"}))
        store.create("glm", make_profile())
        store.set_active("old")
        path = store_root / "providers" / "old.sh"
        path.write_text(
            path.read_text().replace("# YACCS_CUSTOM_VARS_END", 'export ANTHROPIC_X="1"\n# YACCS_CUSTOM_VARS_END')
        )

        projection = store.activate("glm")

        assert projection.stale_custom == frozenset({"DISABLE_PROMPT_CACHING", "ANTHROPIC_X"})
        assert store.get_active() == "glm"

    def test_unparseable_previous_ignored(self, store, store_root, make_profile):
        """Test switching away from a file with a broken quoted value."""
        store.create("old", make_profile(name="old"))
        store.create("glm", make_profile())
        store.set_active("old")
        (store_root / "providers" / "old.sh").write_text('export ANTHROPIC_MODEL="unterminated\n')

        projection = store.activate("glm")

        assert projection.stale_custom == frozenset()
        assert store.get_active() == "glm"

    def test_deactivate(self, store, make_profile):
        """Test reset to default subscription."""
        store.create("glm", make_profile(custom_vars={"DISABLE_PROMPT_CACHING": "1"}))
        store.activate("glm")

        projection = store.deactivate()

        assert store.get_active() is None
        assert projection.to_apply == {}
        assert projection.to_unset == frozenset(STANDARD_VARS) | {"DISABLE_PROMPT_CACHING"}

    def test_preview_does_not_change_marker(self, store, glm_profile):
        """Test preview_activation is read-only."""
        store.create("glm", glm_profile)
        store.preview_activation("glm")
        assert store.get_active() is None


class TestCustomVars:
    """Tests for custom variable operations through the store."""

    def test_set_and_list(self, store, glm_profile):
        """Test adding variables."""
        store.create("glm", glm_profile)
        store.set_custom_var("glm", "DISABLE_PROMPT_CACHING", "1")
        store.set_custom_var("glm", "API_TIMEOUT_MS", "600000")

        assert store.list_custom_vars("glm") == {"DISABLE_PROMPT_CACHING": "1", "API_TIMEOUT_MS": "600000"}
        assert store.read("glm").models == glm_profile.models

    def test_set_keeps_permissions(self, store, glm_profile):
        """Test that in-place edits still write with mode 0600."""
        path = store.create("glm", glm_profile)
        store.set_custom_var("glm", "FOO", "1")
        assert file_mode(path) == 0o600

    def test_set_on_missing_profile(self, store):
        """Test custom variable on unknown profile."""
        with pytest.raises(ProfileNotFoundError):
            store.set_custom_var("nope", "FOO", "1")

    def test_set_reserved_name_writes_nothing(self, store, glm_profile):
        """Test rejected name leaves the file unchanged."""
        path = store.create("glm", glm_profile)
        before = path.read_bytes()

        with pytest.raises(InvalidNameError):
            store.set_custom_var("glm", "CLAUDE_CODE_BAR", "1")

        assert path.read_bytes() == before

    def test_delete(self, store, make_profile):
        """Test removing a variable."""
        store.create("glm", make_profile(custom_vars={"A_VAR": "1", "B_VAR": "2"}))
        store.delete_custom_var("glm", "A_VAR")
        assert store.list_custom_vars("glm") == {"B_VAR": "2"}

    def test_delete_missing(self, store, glm_profile):
        """Test removing a variable that is not set."""
        store.create("glm", glm_profile)
        with pytest.raises(ProfileNotFoundError, match="FOO"):
            store.delete_custom_var("glm", "FOO")
