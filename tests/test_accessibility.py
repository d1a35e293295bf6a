# tests/test_accessibility.py
import pytest

from eduable.accessibility import AccessibilitySettings, merge_settings
from eduable.errors import ValidationError


def test_defaults():
    settings = AccessibilitySettings()
    assert settings.theme == "light"
    assert settings.font_family == "standard"
    assert settings.font_size == "normal"
    assert settings.enable_tts is False
    assert settings.text_to_speech_rate == 1.0


def test_merge_replaces_only_given_keys():
    current = AccessibilitySettings(theme="dark", font_size="large")
    merged = merge_settings(current, {"enableTTS": True})
    assert merged.enable_tts is True
    assert merged.theme == "dark"
    assert merged.font_size == "large"
    # исходное значение не меняется
    assert current.enable_tts is False


def test_merge_accepts_snake_case_keys():
    merged = merge_settings(None, {"font_family": "dyslexic"})
    assert merged.font_family == "dyslexic"
    assert merged.theme == "light"


def test_merge_rejects_unknown_key():
    with pytest.raises(ValidationError):
        merge_settings(AccessibilitySettings(), {"fontColour": "red"})


@pytest.mark.parametrize("patch", [
    {"theme": "neon"},
    {"fontSize": "huge"},
    {"textToSpeechRate": 50},
])
def test_merge_rejects_invalid_values(patch):
    with pytest.raises(ValidationError):
        merge_settings(AccessibilitySettings(), patch)


def test_merge_rejects_non_object():
    with pytest.raises(ValidationError):
        merge_settings(AccessibilitySettings(), ["theme", "dark"])


def test_serialized_with_camel_case_keys():
    data = AccessibilitySettings().model_dump(by_alias=True)
    assert data["enableTTS"] is False
    assert data["fontFamily"] == "standard"
    assert "font_family" not in data
