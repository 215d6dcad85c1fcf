"""
Rule Configuration Store.

The rule exposes a single option, `only_inline_lambdas` (`onlyInlineLambdas` in
camelCase configuration files). Values are read from the `[tool.prefer_final]`
table of the nearest `pyproject.toml` and can be overridden by callers.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

TOOL_SECTION = "prefer_final"


class RuleConfig(BaseModel):
  """
  Options of the prefer-final rule.
  """

  model_config = ConfigDict(populate_by_name=True, extra="forbid")

  only_inline_lambdas: bool = Field(
    False,
    alias="onlyInlineLambdas",
    description="If True, only members initialised with a lambda (or not at all) are candidates.",
  )

  @classmethod
  def from_mapping(cls, data: Dict[str, Any]) -> "RuleConfig":
    """
    Validates a raw option mapping (snake_case or camelCase keys).

    Raises:
        ValueError: If the mapping contains unknown keys or invalid values.
    """
    try:
      return cls.model_validate(data)
    except ValidationError as e:
      raise ValueError(f"Invalid prefer-final configuration: {e}")

  @classmethod
  def load(
    cls,
    only_inline_lambdas: Optional[bool] = None,
    search_path: Optional[Path] = None,
  ) -> "RuleConfig":
    """
    Loads configuration from pyproject.toml and overrides with explicit arguments.

    Args:
        only_inline_lambdas (Optional[bool]): Override for the option.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuleConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    config = cls.from_mapping(toml_config)
    if only_inline_lambdas is not None:
      config = config.model_copy(update={"only_inline_lambdas": only_inline_lambdas})
    return config


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches `start_path` and its parents for a 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory (or file) to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = start_path.resolve()
  if current.is_file():
    current = current.parent

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError):
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get(TOOL_SECTION, {}), parent

  return {}, None
