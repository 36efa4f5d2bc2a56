"""Unit tests configuration file."""

import pytest


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def write_schema():
    """Write a proto3 schema declaring one single-field message per name."""

    def write(path, *messages, imports=()):
        lines = ['syntax = "proto3";']
        lines += [f'import "{name}";' for name in imports]
        lines += [f"message {name} {{ int32 id = 1; }}" for name in messages]
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n")
        return path

    return write
