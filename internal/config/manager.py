"""
Configuration loading for the BBCode renderer.

The configuration is TOML: a main file plus every `*.toml` file found
recursively in the config directories, merged in that order (tables merge
key by key, other values are replaced). Sections:

    [renderer]  strict-mode = true|false
    [tags]      tag rules, see lib.bbcode.rules.rulesFromConfig
    [logging]   see lib.logging_utils.initLogging

String values may reference environment variables as ${NAME}; variables
from a .env file are loaded first. Write $${NAME} for a literal ${NAME},
e.g. in templates that emit JavaScript.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import tomli

import lib.utils as utils

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$(?P<escape>\$?)\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)\}")

TAG_RULE_KEYS = frozenset(
    ["body", "renderer", "handler", "selfclosing", "selfClosing", "self-closing", "nocode", "noCode", "no-code"]
)
RENDERER_OPTIONS: Dict[str, type] = {"strict-mode": bool}


def _replaceEnvVar(match: re.Match[str]) -> str:
    if match.group("escape"):
        return match.group(0)[1:]
    return os.environ.get(match.group("name"), match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """
    Substitute ${NAME} references in every string of a configuration value.

    References to unset variables are left as written.

    Args:
        value: String, table, array or any other TOML value

    Returns:
        New value with references substituted
    """
    if isinstance(value, str):
        return ENV_VAR_PATTERN.sub(_replaceEnvVar, value)
    if isinstance(value, dict):
        return {key: substituteEnvVars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


def mergeConfigs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into tables present in both."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = mergeConfigs(merged[key], value)
        else:
            merged[key] = value
    return merged


def validateConfig(config: Dict[str, Any]) -> List[str]:
    """
    Check the sections the renderer reads.

    Tag names and handler references are checked later, when the rules are
    built; this only catches values the renderer can't interpret at all.

    Returns:
        List of problems, empty if the configuration is usable
    """
    errors: List[str] = []

    for section in ("tags", "renderer", "logging"):
        if section in config and not isinstance(config[section], dict):
            errors.append(f"[{section}] must be a table, got {type(config[section]).__name__}")

    tags = config.get("tags")
    if isinstance(tags, dict):
        for name, rule in tags.items():
            if isinstance(rule, dict):
                unknownKeys = sorted(set(rule) - TAG_RULE_KEYS)
                if unknownKeys:
                    errors.append(f"[tags.{name}] has unknown keys: {', '.join(unknownKeys)}")
            elif not isinstance(rule, str):
                errors.append(f"[tags] entry '{name}' must be a template string or a table, got {type(rule).__name__}")

    renderer = config.get("renderer")
    if isinstance(renderer, dict):
        for option, value in renderer.items():
            expectedType = RENDERER_OPTIONS.get(option)
            if expectedType is None:
                errors.append(f"[renderer] has unknown option '{option}'")
            elif not isinstance(value, expectedType):
                errors.append(f"[renderer] {option} must be {expectedType.__name__}, got {type(value).__name__}")

    return errors


class ConfigManager:
    """Loads, merges and validates the renderer configuration."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """
        Load configuration, exiting the process if it is missing or invalid.

        Args:
            configPath: Main TOML file, optional when configDirs are given
            configDirs: Directories searched recursively for *.toml files
            dotEnvFile: Environment file loaded before substitution, if it exists
        """
        self.config_path = configPath
        self.config_dirs = configDirs or []
        self.loaded_files: List[Path] = []

        if Path(dotEnvFile).is_file():
            utils.load_dotenv(path=dotEnvFile)
        self.config = self._loadConfig()

    def _configFiles(self) -> Iterator[Tuple[Path, bool]]:
        """Yield (path, isMainFile) in merge order."""
        mainFile = Path(self.config_path)
        if mainFile.is_file():
            yield mainFile, True

        for configDir in self.config_dirs:
            dirPath = Path(configDir)
            if not dirPath.is_dir():
                logger.warning(f"Config directory {configDir} does not exist or is not a directory, skipping")
                continue
            for path in sorted(dirPath.rglob("*.toml")):
                if path.is_file():
                    yield path, False

    def _loadConfig(self) -> Dict[str, Any]:
        """
        Read and merge all configuration files.

        Raises:
            SystemExit: If there is no main file and no config directories,
                        the main file can't be parsed, or the merged
                        configuration is invalid. Broken files in config
                        directories are logged and skipped.
        """
        if not Path(self.config_path).is_file() and not self.config_dirs:
            logger.error(f"Configuration file {self.config_path} not found!")
            sys.exit(1)

        config: Dict[str, Any] = {}
        for path, isMainFile in self._configFiles():
            try:
                with open(path, "rb") as f:
                    fileConfig = tomli.load(f)
            except (OSError, tomli.TOMLDecodeError) as e:
                logger.error(f"Failed to load config file {path}: {e}")
                if isMainFile:
                    sys.exit(1)
                continue

            config = mergeConfigs(config, fileConfig)
            self.loaded_files.append(path)
            logger.info(f"Loaded config from {path}")

        config = substituteEnvVars(config)

        errors = validateConfig(config)
        for error in errors:
            logger.error(f"Invalid configuration: {error}")
        if errors:
            sys.exit(1)

        logger.info(f"Configuration loaded from {len(self.loaded_files)} files")
        return config

    def get(self, key: str, default=None) -> Any:
        """Get a top-level configuration value."""
        return self.config.get(key, default)

    def getTagsConfig(self) -> Dict[str, Any]:
        """
        Get tag rules configuration.

        Returns:
            Dict mapping tag names to template strings or tables with
            body/handler, selfclosing and nocode keys
        """
        return self.get("tags", {})

    def getRendererConfig(self) -> Dict[str, Any]:
        """Get renderer options."""
        return self.get("renderer", {})

    def isStrictMode(self) -> bool:
        """Whether render callback errors should abort rendering."""
        return self.getRendererConfig().get("strict-mode", False)

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.get("logging", {})
