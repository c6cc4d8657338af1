"""
Unit tests for AppSettings.

Tests:
- Default values
- Normalization on construction and assignment
- Template substitution
- Persisted form
"""

import pytest
from pydantic import ValidationError

from clipqueue.deliver.settings import (
    DEFAULT_APP_SETTINGS,
    DEFAULT_SUBDIRECTORY,
    AppSettings,
    normalize_directory,
)
from clipqueue.naming.validation import DEFAULT_TEMPLATE


class TestAppSettingsDefaults:

    def test_defaults(self):
        settings = AppSettings()
        assert settings.output_directory == ""
        assert settings.use_subdirectory is True
        assert settings.subdirectory_name == DEFAULT_SUBDIRECTORY
        assert settings.file_name_pattern == DEFAULT_TEMPLATE
        assert settings.zoomed_thumbnails is False

    def test_module_default_matches(self):
        assert DEFAULT_APP_SETTINGS == AppSettings()


class TestNormalization:

    @pytest.mark.parametrize("raw, expected", [
        ("", ""),
        ("/exports", "/exports"),
        ("/exports/", "/exports"),
        ("/exports///", "/exports"),
        ("/", "/"),
        ("//", "/"),
    ])
    def test_normalize_directory(self, raw, expected):
        assert normalize_directory(raw) == expected

    def test_directory_normalized_on_assignment(self):
        settings = AppSettings()
        settings.output_directory = "/exports/"
        assert settings.output_directory == "/exports"

    def test_subdirectory_is_single_component(self):
        assert AppSettings(subdirectory_name=" /mp4/ ").subdirectory_name == "mp4"

    def test_blank_subdirectory_uses_default(self):
        assert AppSettings(subdirectory_name="  ").subdirectory_name == DEFAULT_SUBDIRECTORY


class TestTemplateSubstitution:

    def test_valid_template_kept(self):
        assert AppSettings(file_name_pattern="{name}_{number}").file_name_pattern == (
            "{name}_{number}"
        )

    @pytest.mark.parametrize("pattern", ["", "bad{xyz}name", "{name", "a|b"])
    def test_invalid_template_replaced(self, pattern):
        assert AppSettings(file_name_pattern=pattern).file_name_pattern == DEFAULT_TEMPLATE

    def test_invalid_template_replaced_on_assignment(self):
        settings = AppSettings(file_name_pattern="{number}")
        settings.file_name_pattern = "{oops}"
        assert settings.file_name_pattern == DEFAULT_TEMPLATE


class TestPersistedForm:

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            AppSettings(theme="dark")

    def test_from_dict_ignores_unknown_keys(self):
        settings = AppSettings.from_dict({"use_subdirectory": False, "theme": "dark"})
        assert settings.use_subdirectory is False

    def test_to_dict_keys(self):
        assert set(AppSettings().to_dict()) == {
            "output_directory",
            "use_subdirectory",
            "subdirectory_name",
            "file_name_pattern",
            "zoomed_thumbnails",
        }
