# eduable/accessibility.py
from typing import Literal, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import ValidationError

Theme = Literal["light", "dark", "high-contrast", "color-blind"]
FontFamily = Literal["standard", "dyslexic"]
FontSize = Literal["normal", "large", "larger"]
CursorSize = Literal["normal", "large", "largest"]
LineSpacing = Literal["normal", "wide", "wider"]


class AccessibilitySettings(BaseModel):
    """Полный набор настроек доступности пользователя. Неизвестные ключи запрещены."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    theme: Theme = "light"
    font_family: FontFamily = "standard"
    font_size: FontSize = "normal"
    enable_tts: bool = Field(default=False, alias="enableTTS")
    cursor_size: CursorSize = "normal"
    line_spacing: LineSpacing = "normal"
    text_to_speech_rate: float = Field(default=1.0, ge=0.1, le=10)
    motion_reduced: bool = False
    autoplay: bool = True
    highlight_links: bool = False
    keyboard_navigation: bool = False
    image_descriptions: bool = True


class AccessibilitySettingsPatch(BaseModel):
    # Частичное обновление: передаются только меняющиеся поля
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    theme: Optional[Theme] = None
    font_family: Optional[FontFamily] = None
    font_size: Optional[FontSize] = None
    enable_tts: Optional[bool] = Field(default=None, alias="enableTTS")
    cursor_size: Optional[CursorSize] = None
    line_spacing: Optional[LineSpacing] = None
    text_to_speech_rate: Optional[float] = Field(default=None, ge=0.1, le=10)
    motion_reduced: Optional[bool] = None
    autoplay: Optional[bool] = None
    highlight_links: Optional[bool] = None
    keyboard_navigation: Optional[bool] = None
    image_descriptions: Optional[bool] = None


def default_settings() -> AccessibilitySettings:
    return AccessibilitySettings()


def merge_settings(current: Optional[AccessibilitySettings], patch) -> AccessibilitySettings:
    """
    Накладывает частичное обновление на текущие настройки.

    `patch`: словарь (как пришёл из запроса) или AccessibilitySettingsPatch.
    Неизвестные ключи и недопустимые значения дают ValidationError,
    а ключи, которых нет в patch, остаются как были.
    """
    if patch is None:
        patch = {}
    if not isinstance(patch, AccessibilitySettingsPatch):
        if not isinstance(patch, dict):
            raise ValidationError("Accessibility settings must be an object")
        try:
            patch = AccessibilitySettingsPatch.model_validate(patch)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid accessibility settings: {_describe(e)}") from e

    base = current if current is not None else default_settings()
    changes = patch.model_dump(exclude_unset=True)
    # Явный null для поля не сбрасывает его, просто пропускаем
    changes = {key: value for key, value in changes.items() if value is not None}
    return base.model_copy(update=changes)


def _describe(error: pydantic.ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
