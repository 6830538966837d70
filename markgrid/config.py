import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from markgrid.rules import AutoMarkRule, RuleCategory, RuleType, category_of

logger = logging.getLogger(__name__)

APP_DIR_NAME = "MarkGrid"
RULES_FILE = "automark_rules.json"


def default_config_dir(
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    platform = platform or sys.platform
    environ = os.environ if environ is None else environ
    home = home or Path.home()
    if platform.startswith("win"):
        app_data = environ.get("APPDATA")
        return Path(app_data, APP_DIR_NAME) if app_data else home / APP_DIR_NAME
    if platform == "darwin":
        return home / "Library" / "Application Support" / APP_DIR_NAME
    xdg_config_home = environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home, APP_DIR_NAME)
    return home / ".config" / APP_DIR_NAME


@dataclass
class AppConfig:
    config_dir: Path

    @classmethod
    def default(cls) -> "AppConfig":
        return cls(default_config_dir())

    @property
    def rules_dir(self) -> Path:
        return self.config_dir / "rules"

    @property
    def rules_path(self) -> Path:
        return self.rules_dir / RULES_FILE

    def ensure_dirs(self) -> "AppConfig":
        try:
            self.rules_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Cannot create config directory %s (%s), using cwd", self.config_dir, exc)
            self.config_dir = Path(".")
        return self


DEFAULT_CATEGORY_COLORS: dict[RuleCategory, str] = {
    RuleCategory.NUMBER: "#FFEB3B",
    RuleCategory.STRING: "#4CAF50",
    RuleCategory.FORMAT: "#F44336",
    RuleCategory.EMPTY: "#9E9E9E",
}


class AutoMarkSettings:
    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self.category_colors: dict[RuleCategory, str] = dict(DEFAULT_CATEGORY_COLORS)
        self._templates: list[AutoMarkRule] = []

    def default_color_for(self, rule_type: Optional[RuleType]) -> str:
        if rule_type is None:
            return self.category_colors[RuleCategory.NUMBER]
        return self.category_colors[category_of(rule_type)]

    def update_colors(self, colors: Mapping[RuleCategory, str]) -> bool:
        for category, color in colors.items():
            if color:
                self.category_colors[category] = color
        return self.save()

    def templates(self) -> list[AutoMarkRule]:
        return list(self._templates)

    def add_template(self, rule: AutoMarkRule) -> None:
        self._templates.append(rule)
        self.save()

    def remove_template(self, rule_id: str) -> bool:
        before = len(self._templates)
        self._templates = [rule for rule in self._templates if rule.id != rule_id]
        if len(self._templates) == before:
            return False
        self.save()
        return True

    def load(self) -> "AutoMarkSettings":
        path = self._config.rules_path
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            return self
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable rule templates at %s: %s", path, exc)
            return self
        if not isinstance(data, dict):
            return self
        colors = data.get("colors", {})
        if isinstance(colors, dict):
            for category in RuleCategory:
                color = colors.get(category.value)
                if isinstance(color, str) and color:
                    self.category_colors[category] = color
        templates: list[AutoMarkRule] = []
        rules = data.get("rules", [])
        for item in rules if isinstance(rules, list) else []:
            if not isinstance(item, dict):
                continue
            try:
                templates.append(AutoMarkRule.from_dict(item))
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping invalid rule template %r: %s", item, exc)
        self._templates = templates
        return self

    def save(self) -> bool:
        payload = {
            "version": 1,
            "colors": {category.value: color for category, color in self.category_colors.items()},
            "rules": [rule.to_dict() for rule in self._templates],
        }
        path = self._config.rules_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=True, indent=2, sort_keys=True)
        except OSError as exc:
            logger.warning("Could not save rule templates to %s: %s", path, exc)
            return False
        return True
