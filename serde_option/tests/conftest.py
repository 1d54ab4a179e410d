"""Unit tests configuration file."""

from serde_option.generator.logs import configure_logging


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False

    configure_logging()
