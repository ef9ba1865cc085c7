"""
Unit tests for exporter settings.
"""
import pytest

from dockdesc.exceptions import DescriptorArgumentError
from dockdesc.MODELS.export_settings import ExportSettings, load_settings


def test_defaults():
    settings = load_settings(environ={})
    assert settings == ExportSettings()
    assert settings.exec_form == "auto"
    assert settings.newline == "\n"
    assert settings.encoding == "utf-8"
    assert settings.log_level == "WARNING"


def test_environment_overrides(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("DOCKDESC_EXEC_FORM=always\nDOCKDESC_ENCODING=latin-1\nOTHER=1\n")
    settings = load_settings(str(env_file), environ={"DOCKDESC_EXEC_FORM": "NEVER"})
    assert settings.exec_form == "never"
    assert settings.encoding == "latin-1"


def test_newline_aliases():
    assert load_settings(environ={"DOCKDESC_NEWLINE": "CRLF"}).newline == "\r\n"
    assert load_settings(environ={"DOCKDESC_NEWLINE": "\\n"}).newline == "\n"


def test_log_level_is_normalized():
    assert load_settings(environ={"DOCKDESC_LOG_LEVEL": "debug"}).log_level == "DEBUG"


@pytest.mark.parametrize("name,value", [
    ("DOCKDESC_EXEC_FORM", "sometimes"),
    ("DOCKDESC_NEWLINE", "cr"),
    ("DOCKDESC_ENCODING", "no-such-codec"),
    ("DOCKDESC_LOG_LEVEL", "LOUD"),
])
def test_invalid_values(name, value):
    with pytest.raises(DescriptorArgumentError):
        load_settings(environ={name: value})
