"""
BBCode renderer - render bracketed markup in text files with tag rules from TOML configuration.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional, TextIO

from internal.config.manager import ConfigManager
from lib.bbcode import BBCodeParser, rulesFromConfig
from lib.logging_utils import initLogging
from lib.utils import jsonDumps

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logger = logging.getLogger(__name__)


class BBCodeRenderApp:
    """Command line application that renders files with configured tag rules."""

    def __init__(
        self, configPath: str = "config.toml", config_dirs: Optional[List[str]] = None, verbosity: int = 0
    ):
        """Initialize application with all components."""
        self.configManager = ConfigManager(configPath, config_dirs)

        initLogging(self.configManager.getLoggingConfig(), verbosity=verbosity)

        self.parser = BBCodeParser(
            rulesFromConfig(self.configManager.getTagsConfig()),
            {"strict_mode": self.configManager.isStrictMode()},
        )

    def renderStream(self, name: str, source: TextIO, target: TextIO, withStats: bool = False) -> None:
        """Render everything read from source into target."""
        output, stats = self.parser.renderWithStats(source.read())
        target.write(output)
        if withStats:
            logger.info(f"Rendered {name}: {stats.toDict()}")

    def run(self, inputFiles: List[str], outputFile: Optional[str] = None, withStats: bool = False) -> None:
        """Render input files (or stdin) to the output file (or stdout)."""
        target = open(outputFile, "w", encoding="utf-8") if outputFile else sys.stdout
        try:
            if not inputFiles:
                self.renderStream("<stdin>", sys.stdin, target, withStats)
            for inputFile in inputFiles:
                with open(inputFile, "r", encoding="utf-8") as source:
                    self.renderStream(inputFile, source, target, withStats)
        finally:
            if target is not sys.stdout:
                target.close()


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Render BBCode markup with tag rules from TOML configuration")
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Write rendered text to this file instead of stdout",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Log render statistics for every input",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more (-v for debug, -vv to include every recovered tag)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Log less, can be repeated",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )
    parser.add_argument(
        "files",
        nargs="*",
        metavar="FILE",
        help="Files to render (default: read from stdin)",
    )
    args = parser.parse_args(argv)
    args.config = os.path.abspath(args.config)

    if args.config_dir:
        args.config_dir = [os.path.abspath(dir_path) for dir_path in args.config_dir]

    return args


def prettyPrintConfig(config_manager: ConfigManager):
    """Pretty-print the loaded configuration."""
    print("=== BBCode Renderer Configuration ===")
    print()
    print("Loaded files:")
    for path in config_manager.loaded_files:
        print(f"  {path}")
    print()
    print(jsonDumps(config_manager.config, indent=2))
    print()
    print("=== Configuration loaded successfully ===")


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        if args.print_config:
            config_manager = ConfigManager(args.config, args.config_dir)
            prettyPrintConfig(config_manager)
            sys.exit(0)

        app = BBCodeRenderApp(
            configPath=args.config, config_dirs=args.config_dir, verbosity=args.verbose - args.quiet
        )
        app.run(args.files, outputFile=args.output, withStats=args.stats)
    except KeyboardInterrupt:
        logger.info("Rendering stopped by user")
    except Exception as e:
        logger.error(f"Rendering failed: {e}")
        logger.exception(e)
        sys.exit(1)


if __name__ == "__main__":
    main()
