"""
Tests for the command line entry point.
"""

import io
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

import main
from main import BBCodeRenderApp, parse_arguments


def shout(tag):
    return tag.content.upper()


# ============================================================================
# Argument Parsing Tests
# ============================================================================


class TestParseArguments:
    """Test command line argument parsing."""

    def testDefaults(self, tempDir):
        """Test default values."""
        args = parse_arguments([])

        assert Path(args.config).name == "config.toml"
        assert Path(args.config).is_absolute()
        assert args.config_dir is None
        assert args.output is None
        assert args.stats is False
        assert args.verbose == 0
        assert args.quiet == 0
        assert args.print_config is False
        assert args.files == []

    def testPathsAreAbsolute(self, tempDir):
        """Test that config paths are made absolute."""
        args = parse_arguments(["-c", "my.toml", "--config-dir", "conf.d", "--config-dir", "local", "a.txt"])

        assert Path(args.config).is_absolute()
        assert Path(args.config).name == "my.toml"
        assert [Path(d).name for d in args.config_dir] == ["conf.d", "local"]
        assert all(Path(d).is_absolute() for d in args.config_dir)
        assert args.files == ["a.txt"]

    def testVerbosityFlags(self, tempDir):
        """Test that -v and -q can be repeated."""
        args = parse_arguments(["-vv", "-q"])

        assert args.verbose == 2
        assert args.quiet == 1


# ============================================================================
# Application Tests
# ============================================================================


class TestBBCodeRenderApp:
    """Test the application object."""

    def testParserFromConfig(self, configFile):
        """Test that the parser is built from the [tags] section."""
        app = BBCodeRenderApp(str(configFile))

        assert set(app.parser.tagNames) == {"b", "i", "url", "hr", "code"}
        assert app.parser.strict_mode is False
        assert app.parser.getRule("hr").selfClosing is True
        assert app.parser.getRule("code").noCode is True

    def testRenderStream(self, configFile):
        """Test rendering a stream into another stream."""
        app = BBCodeRenderApp(str(configFile))
        target = io.StringIO()

        app.renderStream("test", io.StringIO("[b]bold[/b] [code][i]x[/i][/code][hr]"), target)

        assert target.getvalue() == "<b>bold</b> <pre>[i]x[/i]</pre><hr>"

    def testRenderStreamStats(self, configFile):
        """Test that statistics are logged on request."""
        app = BBCodeRenderApp(str(configFile))

        with patch.object(main.logger, "info") as mockInfo:
            app.renderStream("test", io.StringIO("[b]x[/b][/i]"), io.StringIO(), withStats=True)

        mockInfo.assert_called_once()
        message = mockInfo.call_args[0][0]
        assert "test" in message
        assert "'closersDropped': 1" in message

    def testStrictModeFromConfig(self, tempDir):
        """Test that renderer.strict-mode is passed to the parser."""
        configPath = tempDir / "config.toml"
        configPath.write_text('[renderer]\nstrict-mode = true\n\n[tags]\nb = "<b>{content}</b>"\n')

        app = BBCodeRenderApp(str(configPath))

        assert app.parser.strict_mode is True


# ============================================================================
# Entry Point Tests
# ============================================================================


class TestMain:
    """Test main()."""

    def testRenderFilesToOutput(self, tempDir, configFile):
        """Test rendering several files into an output file."""
        (tempDir / "one.txt").write_text("[b]one[/b]\n", encoding="utf-8")
        (tempDir / "two.txt").write_text("[url=http://example.com]two[/url] [code][b]x[/b][/code]\n", encoding="utf-8")

        main.main(["-c", str(configFile), "-o", "out.html", "one.txt", "two.txt"])

        assert (tempDir / "out.html").read_text(encoding="utf-8") == (
            "<b>one</b>\n" '<a href="http://example.com">two</a> <pre>[b]x[/b]</pre>\n'
        )

    def testRenderStdinToStdout(self, configFile, monkeypatch, capsys):
        """Test rendering from stdin to stdout when no files are given."""
        monkeypatch.setattr("sys.stdin", io.StringIO("[i]x[/i] [unknown]y[/unknown] [b]open"))

        main.main(["-c", str(configFile)])

        assert capsys.readouterr().out == "<i>x</i> [unknown]y[/unknown] [b]open"

    def testPrintConfig(self, configFile, capsys):
        """Test --print-config prints the configuration and exits."""
        with pytest.raises(SystemExit) as excInfo:
            main.main(["-c", str(configFile), "--print-config"])

        assert excInfo.value.code == 0
        output = capsys.readouterr().out
        assert "=== BBCode Renderer Configuration ===" in output
        assert '"b": "<b>{content}</b>"' in output
        assert f"  {configFile}" in output

    def testConfigDir(self, tempDir, monkeypatch, capsys):
        """Test loading tag rules from a config directory only."""
        configDir = tempDir / "conf.d"
        configDir.mkdir()
        (configDir / "tags.toml").write_text('[tags]\nu = "<u>{content}</u>"\n')
        monkeypatch.setattr("sys.stdin", io.StringIO("[u]x[/u]"))

        main.main(["-c", "missing.toml", "--config-dir", str(configDir)])

        assert capsys.readouterr().out == "<u>x</u>"

    def testMissingConfig(self, tempDir):
        """Test that a missing configuration exits with an error."""
        with pytest.raises(SystemExit) as excInfo:
            main.main(["-c", str(tempDir / "missing.toml")])

        assert excInfo.value.code == 1

    def testInvalidRuleExits(self, tempDir):
        """Test that an invalid tag rule exits with an error."""
        configPath = tempDir / "config.toml"
        configPath.write_text('[tags.b]\nhandler = "html:no_such_function"\n')

        with pytest.raises(SystemExit) as excInfo:
            main.main(["-c", str(configPath)])

        assert excInfo.value.code == 1

    def testMissingInputFileExits(self, configFile):
        """Test that an unreadable input file exits with an error."""
        with pytest.raises(SystemExit) as excInfo:
            main.main(["-c", str(configFile), "no-such-file.txt"])

        assert excInfo.value.code == 1

    def testStrictModeRenderErrorExits(self, tempDir, monkeypatch):
        """Test that a failing handler aborts rendering in strict mode."""
        configPath = tempDir / "config.toml"
        configPath.write_text('[renderer]\nstrict-mode = true\n\n[tags.n]\nhandler = "builtins:len"\n')
        monkeypatch.setattr("sys.stdin", io.StringIO("[n]x[/n]"))

        with pytest.raises(SystemExit) as excInfo:
            main.main(["-c", str(configPath)])

        assert excInfo.value.code == 1

    def testRenderErrorKeepsTagInLenientMode(self, tempDir, monkeypatch, capsys):
        """Test that a failing handler leaves the tag unrendered by default."""
        configPath = tempDir / "config.toml"
        configPath.write_text('[tags.n]\nhandler = "builtins:len"\n')
        monkeypatch.setattr("sys.stdin", io.StringIO("[n]x[/n]"))

        main.main(["-c", str(configPath)])

        assert capsys.readouterr().out == "[n]x[/n]"

    @pytest.mark.parametrize(
        "flags, expected",
        [([], logging.INFO), (["-v"], logging.DEBUG), (["-q"], logging.WARNING), (["-v", "-q"], logging.INFO)],
    )
    def testVerbosityShiftsLogLevel(self, configFile, monkeypatch, flags, expected):
        """Test that -v and -q shift the configured log level."""
        monkeypatch.setattr("sys.stdin", io.StringIO(""))

        main.main(["-c", str(configFile), *flags])

        assert logging.getLogger().level == expected

    def testHandlerFromConfig(self, tempDir, monkeypatch, capsys):
        """Test that handler references are resolved and called with the tag."""
        configPath = tempDir / "config.toml"
        configPath.write_text(f'[tags.shout]\nhandler = "{__name__}:shout"\n')
        monkeypatch.setattr("sys.stdin", io.StringIO("say [shout]hello[/shout]"))

        main.main(["-c", str(configPath)])

        assert capsys.readouterr().out == "say HELLO"
