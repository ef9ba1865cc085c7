"""
Unit tests for the Dockerfile exporter.
"""
import io

import pytest

from dockdesc.exceptions import DescriptorArgumentError, DescriptorExportError
from dockdesc.EXPORTERS.dockerfile_exporter import (
    DockerfileExporter,
    command_form,
    env_value,
    transfer,
)
from dockdesc.MODELS.descriptor import DockerDescriptor
from dockdesc.MODELS.export_settings import ExportSettings
from dockdesc.MODELS.instructions import CommentInstruction, InstructionKind, OnBuildInstruction
from dockdesc.PARSERS.dockerfile_parser import DockerfileParser


def render(descriptor, **settings):
    return DockerfileExporter(ExportSettings(**settings)).render_text(descriptor)


class TestGrammar:
    """One line per instruction, in sequence order."""

    def test_full_descriptor(self):
        descriptor = (DockerDescriptor()
                      .comment("build image")
                      .from_("python:3.12-slim")
                      .maintainer("alice@example.com")
                      .env("PYTHONUNBUFFERED", "1")
                      .workdir("/app")
                      .copy("requirements.txt", "/app/")
                      .run("pip install -r requirements.txt")
                      .add("https://example.com/a.tgz", "/opt/")
                      .volume("/data")
                      .expose(8000)
                      .user("app")
                      .entrypoint("python", "-m", "app")
                      .cmd("--port", "8000"))
        assert render(descriptor) == (
            "# build image\n"
            "FROM python:3.12-slim\n"
            "MAINTAINER alice@example.com\n"
            "ENV PYTHONUNBUFFERED=1\n"
            "WORKDIR /app\n"
            "COPY requirements.txt /app/\n"
            "RUN pip install -r requirements.txt\n"
            "ADD https://example.com/a.tgz /opt/\n"
            "VOLUME /data\n"
            "EXPOSE 8000\n"
            "USER app\n"
            'ENTRYPOINT ["python", "-m", "app"]\n'
            'CMD ["--port", "8000"]\n'
        )

    def test_empty_descriptor(self):
        assert render(DockerDescriptor()) == ""

    def test_onbuild_prefixes_nested_line(self):
        descriptor = DockerDescriptor()
        descriptor.onbuild(InstructionKind.COPY).set_source(".").set_destination("/src")
        descriptor.onbuild("run").set_parameters("make", "install")
        assert render(descriptor).splitlines() == [
            "ONBUILD COPY . /src",
            'ONBUILD RUN ["make", "install"]',
        ]

    def test_multiline_comment(self):
        descriptor = DockerDescriptor().comment("first\n\nthird")
        assert render(descriptor) == "# first\n#\n# third\n"

    def test_empty_comment(self):
        assert render(DockerDescriptor().comment("")) == "#\n"

    def test_env_value_quoting(self):
        descriptor = DockerDescriptor().env("GREETING", "hello world").env("EMPTY", "")
        assert render(descriptor).splitlines() == [
            'ENV GREETING="hello world"',
            'ENV EMPTY=""',
        ]

    def test_crlf_newline(self):
        descriptor = DockerDescriptor().from_("alpine").run("true")
        assert render(descriptor, newline="crlf") == "FROM alpine\r\nRUN true\r\n"


class TestExecForm:
    """RUN/CMD/ENTRYPOINT shell versus exec form."""

    def test_command_form_auto(self):
        assert command_form(["echo hi"]) == "echo hi"
        assert command_form(["echo", "hi"]) == '["echo", "hi"]'

    def test_command_form_always(self):
        assert command_form(["echo hi"], "always") == '["echo hi"]'

    def test_command_form_never(self):
        assert command_form(["echo", "hi"], "never") == "echo hi"

    def test_settings_drive_rendering(self):
        descriptor = DockerDescriptor().cmd("python", "app.py")
        assert render(descriptor, exec_form="never") == "CMD python app.py\n"


class TestFilters:
    """Quoting helpers."""

    def test_env_value(self):
        assert env_value("prod") == "prod"
        assert env_value('say "hi"') == '"say \\"hi\\""'

    def test_transfer(self):
        assert transfer("a", "b") == "a b"
        assert transfer("my file", "/app/") == '["my file", "/app/"]'


class TestFailures:
    """Incomplete instructions and failing sinks."""

    @pytest.mark.parametrize("build", [
        lambda d: d.from_(),
        lambda d: d.run(),
        lambda d: d.expose(),
        lambda d: d.env().set_key("ONLY_KEY"),
        lambda d: d.copy().set_source("."),
        lambda d: d.workdir(),
        lambda d: d.onbuild(),
        lambda d: d.comment(),
    ])
    def test_missing_fields(self, build):
        descriptor = DockerDescriptor()
        build(descriptor)
        with pytest.raises(DescriptorExportError):
            render(descriptor)

    def test_no_partial_write(self):
        descriptor = DockerDescriptor().from_("alpine")
        descriptor.run()
        sink = io.StringIO()
        with pytest.raises(DescriptorExportError):
            descriptor.export_to(sink)
        assert sink.getvalue() == ""

    def test_closed_sink(self):
        sink = io.StringIO()
        sink.close()
        with pytest.raises(DescriptorExportError) as excinfo:
            DockerDescriptor().from_("alpine").export_to(sink)
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_binary_sink_uses_encoding(self):
        sink = io.BytesIO()
        exporter = DockerfileExporter(ExportSettings(encoding="utf-16"))
        DockerDescriptor().comment("é").export_to(sink, exporter)
        assert sink.getvalue().decode("utf-16") == "# é\n"

    def test_render_line_rejects_unknown_objects(self):
        with pytest.raises(DescriptorArgumentError):
            DockerfileExporter().render_line(object())


class TestOnBuildExport:
    """ONBUILD renders the line of the instruction it wraps."""

    def test_export_to_renders_wrapped_instruction(self):
        descriptor = DockerDescriptor().from_("alpine")
        descriptor.onbuild("run").set_parameters("make")
        sink = io.StringIO()
        descriptor.export_to(sink)
        assert sink.getvalue() == "FROM alpine\nONBUILD RUN make\n"

    def test_parsed_onbuild_exports(self):
        descriptor = DockerfileParser().parse_from_string("FROM alpine\nONBUILD RUN make\n")
        assert descriptor.export_as_string() == "FROM alpine\nONBUILD RUN make\n"

    def test_constructed_comment_wrapper_is_rejected(self):
        descriptor = DockerDescriptor()
        descriptor.add_instruction(OnBuildInstruction(nested=CommentInstruction(text="x")))
        with pytest.raises(DescriptorExportError):
            render(descriptor)


class TestLineBreaks:
    """Every instruction stays a single Dockerfile instruction."""

    def test_shell_command_uses_continuations(self):
        descriptor = DockerDescriptor().from_("alpine").run("echo a\nUSER root")
        text = render(descriptor)
        assert text == "FROM alpine\nRUN echo a \\\nUSER root\n"
        kinds = [i.kind for i in DockerfileParser().parse_from_string(text)]
        assert kinds == [InstructionKind.FROM, InstructionKind.RUN]

    def test_shell_command_continuations_follow_newline_setting(self):
        descriptor = DockerDescriptor().run("make\r\ninstall")
        assert render(descriptor, newline="crlf") == "RUN make \\\r\ninstall\r\n"

    def test_exec_form_escapes_line_breaks(self):
        descriptor = DockerDescriptor().cmd("sh", "-c", "echo a\necho b")
        assert render(descriptor) == 'CMD ["sh", "-c", "echo a\\necho b"]\n'

    def test_trailing_backslash_in_shell_command(self):
        with pytest.raises(DescriptorExportError):
            command_form(["echo \\"])

    def test_env_value_is_escaped(self):
        descriptor = DockerDescriptor().env("MOTD", "one\ntwo")
        assert render(descriptor) == 'ENV MOTD="one\\ntwo"\n'

    @pytest.mark.parametrize("build", [
        lambda d: d.from_("alpine\nRUN rm -rf /"),
        lambda d: d.maintainer("alice\r\nUSER root"),
        lambda d: d.user("app\\"),
        lambda d: d.volume("/data\n/other"),
        lambda d: d.workdir("/app\rRUN id"),
        lambda d: d.env("A\nB", "1"),
        lambda d: d.copy("src\n", "/app"),
        lambda d: d.add(".", "/opt\nUSER root"),
    ])
    def test_single_line_fields_reject_line_breaks(self, build):
        descriptor = DockerDescriptor()
        build(descriptor)
        with pytest.raises(DescriptorExportError):
            descriptor.export_as_string()

    def test_onbuild_wrapped_field_is_checked(self):
        descriptor = DockerDescriptor()
        descriptor.onbuild("user").set_name("root\nRUN id")
        with pytest.raises(DescriptorExportError):
            render(descriptor)
