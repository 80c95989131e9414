"""
Tests for schedule settings: yaml defaults and per-owner overrides.
"""

import pytest

from focusday.errors import ValidationError
from focusday.settings import ScheduleSettings, SettingsStore, load_defaults, parse_hhmm, validate_updates


@pytest.fixture
def defaults():
    return ScheduleSettings()


class TestLoadDefaults:
    def test_bundled_yaml(self):
        settings = load_defaults()
        assert settings.pomodoro_work_minutes == 25
        assert settings.planning_ritual_time == "08:00"
        assert settings.planning_ritual_enabled is True

    def test_nested_sections_flatten(self, tmp_path):
        path = tmp_path / "schedule.yaml"
        path.write_text(
            "work_start_time: '07:30'\n"
            "pomodoro:\n  work_minutes: 50\n  sessions_before_long: 3\n"
            "planning_ritual:\n  enabled: false\n  time: '06:45'\n"
            "unknown_key: 1\n"
        )
        settings = load_defaults(path)

        assert settings.work_start_time == "07:30"
        assert settings.pomodoro_work_minutes == 50
        assert settings.pomodoro_sessions_before_long == 3
        assert settings.pomodoro_break_minutes == 5
        assert settings.planning_ritual_enabled is False
        assert settings.planning_ritual_time == "06:45"

    def test_missing_file_uses_builtins(self, tmp_path):
        assert load_defaults(tmp_path / "absent.yaml") == ScheduleSettings()

    def test_broken_yaml_uses_builtins(self, tmp_path):
        path = tmp_path / "schedule.yaml"
        path.write_text("pomodoro: [unclosed\n")
        assert load_defaults(path) == ScheduleSettings()


class TestValidate:
    def test_unknown_and_none_dropped(self):
        assert validate_updates({"bogus": 1, "default_view": None, "show_24_hours": False}) == {
            "show_24_hours": False
        }

    @pytest.mark.parametrize(
        "updates",
        [
            {"work_start_time": "9am"},
            {"planning_ritual_time": "25:00"},
            {"default_view": "month"},
            {"pomodoro_work_minutes": 0},
            {"pomodoro_work_minutes": "abc"},
            {"pomodoro_break_minutes": [5]},
        ],
    )
    def test_rejects_bad_values(self, updates):
        with pytest.raises(ValidationError):
            validate_updates(updates)

    def test_parse_hhmm(self):
        assert parse_hhmm("08:05").hour == 8
        assert parse_hhmm("08:05").minute == 5


class TestSettingsStore:
    def test_no_row_returns_defaults(self, store, defaults):
        assert SettingsStore(store, "user-1", defaults).fetch() == defaults

    def test_upsert_then_fetch(self, store, defaults):
        settings_store = SettingsStore(store, "user-1", defaults)

        saved = settings_store.upsert(pomodoro_work_minutes=45, show_24_hours=False)

        assert saved.pomodoro_work_minutes == 45
        assert saved.show_24_hours is False
        assert settings_store.fetch() == saved

    def test_second_upsert_keeps_earlier_fields(self, store, defaults):
        settings_store = SettingsStore(store, "user-1", defaults)
        settings_store.upsert(pomodoro_work_minutes=45)
        settings_store.upsert(default_view="week")

        settings = settings_store.fetch()
        assert settings.pomodoro_work_minutes == 45
        assert settings.default_view == "week"
        assert len(store.query("SELECT id FROM schedule_settings")) == 1

    def test_owners_are_separate(self, store, defaults):
        SettingsStore(store, "user-1", defaults).upsert(buffer_between_blocks=15)
        assert SettingsStore(store, "user-2", defaults).fetch().buffer_between_blocks == 5

    def test_invalid_update_rejected(self, store, defaults):
        settings_store = SettingsStore(store, "user-1", defaults)
        assert settings_store.upsert(default_view="month") is None
        assert settings_store.fetch() == defaults

    def test_non_numeric_minutes_rejected(self, store, defaults):
        settings_store = SettingsStore(store, "user-1", defaults)
        assert settings_store.upsert(pomodoro_work_minutes="abc") is None
        assert settings_store.fetch() == defaults

    def test_no_owner(self, store, defaults):
        settings_store = SettingsStore(store, None, defaults)
        assert settings_store.fetch() == defaults
        assert settings_store.upsert(pomodoro_work_minutes=45) is None
