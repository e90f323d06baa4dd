from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, TypedDict

ThemeMode = Literal["dark", "light"]


class SpanStyle(TypedDict, total=False):
    color: str
    background: str
    bold: bool
    italic: bool


class HighlightPalette(TypedDict, total=False):
    block: SpanStyle
    delimiter: SpanStyle
    scope_keyword: SpanStyle
    quill_keyword: SpanStyle
    identifier: SpanStyle
    yaml_key: SpanStyle
    yaml_string: SpanStyle
    yaml_number: SpanStyle
    yaml_bool: SpanStyle
    yaml_comment: SpanStyle


class HighlightSettings(TypedDict, total=False):
    enabled: bool
    theme: ThemeMode
    rehighlight_debounce_ms: int
    palettes: dict[str, HighlightPalette]


class FoldingSettings(TypedDict, total=False):
    enabled: bool
    refresh_debounce_ms: int
    collapsed_summary: str
    gutter_width: int


class CompletionSettings(TypedDict, total=False):
    enabled: bool
    auto_trigger: bool
    max_items: int
    production_only: bool


class CacheSettings(TypedDict, total=False):
    max_entries: int


class CatalogSettings(TypedDict, total=False):
    manifest_path: str


class EngineSettings(TypedDict, total=False):
    font_family: str
    font_size: int
    highlight: HighlightSettings
    folding: FoldingSettings
    completion: CompletionSettings
    cache: CacheSettings
    catalog: CatalogSettings
    keybindings: dict[str, list[str]]


@dataclass(slots=True, frozen=True)
class SettingsPaths:
    config_dir: Path
    settings_filename: str = "settings.json"
    settings_file: Path = field(init=False)

    def __post_init__(self) -> None:
        config_dir = Path(self.config_dir).expanduser().resolve()
        object.__setattr__(self, "config_dir", config_dir)
        object.__setattr__(self, "settings_file", config_dir / self.settings_filename)

    @staticmethod
    def default() -> "SettingsPaths":
        return SettingsPaths(config_dir=Path.home() / ".config" / "quillmark")


def _palette(
    *,
    block_bg: str,
    delimiter: str,
    keyword: str,
    identifier: str,
    key: str,
    string: str,
    number: str,
    boolean: str,
    comment: str,
) -> HighlightPalette:
    return {
        "block": {"background": block_bg},
        "delimiter": {"color": delimiter},
        "scope_keyword": {"color": keyword, "bold": True},
        "quill_keyword": {"color": keyword, "bold": True},
        "identifier": {"color": identifier, "bold": True},
        "yaml_key": {"color": key},
        "yaml_string": {"color": string},
        "yaml_number": {"color": number},
        "yaml_bool": {"color": boolean},
        "yaml_comment": {"color": comment, "italic": True},
    }


def default_engine_settings() -> EngineSettings:
    defaults: EngineSettings = {
        "font_family": "",
        "font_size": 11,
        "highlight": {
            "enabled": True,
            "theme": "dark",
            "rehighlight_debounce_ms": 120,
            "palettes": {
                "light": _palette(
                    block_bg="#08355E93",
                    delimiter="#71717a",
                    keyword="#355e93",
                    identifier="#0891b2",
                    key="#09090b",
                    string="#16a34a",
                    number="#d97706",
                    boolean="#7c3aed",
                    comment="#6A9955",
                ),
                "dark": _palette(
                    block_bg="#14355E93",
                    delimiter="#71717a",
                    keyword="#569Cff",
                    identifier="#06b6d4",
                    key="#f4f4f5",
                    string="#22c55e",
                    number="#f59e0b",
                    boolean="#8b5cf6",
                    comment="#6A9955",
                ),
            },
        },
        "folding": {
            "enabled": True,
            "refresh_debounce_ms": 140,
            "collapsed_summary": "---…---",
            "gutter_width": 14,
        },
        "completion": {
            "enabled": True,
            "auto_trigger": True,
            "max_items": 200,
            "production_only": False,
        },
        "cache": {
            "max_entries": 8,
        },
        "catalog": {
            "manifest_path": "",
        },
        "keybindings": {
            "action.fold_block": ["Ctrl+Shift+["],
            "action.unfold_block": ["Ctrl+Shift+]"],
            "action.toggle_all_metadata_folds": ["Ctrl+Alt+M"],
            "action.trigger_completion": ["Ctrl+Space"],
        },
    }
    return deepcopy(defaults)
