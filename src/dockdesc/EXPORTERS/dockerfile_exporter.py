# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exporter rendering a descriptor's instruction sequence as Dockerfile text.

Each instruction kind is rendered by its own Jinja2 template. The complete
text is rendered before anything is written, so a failing instruction never
leaves a partial Dockerfile in the sink.
"""
import io
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from jinja2 import DictLoader, Environment, StrictUndefined

from ..exceptions import DescriptorExportError
from ..MODELS.export_settings import ExportSettings
from ..MODELS.instructions import InstructionKind

logger = logging.getLogger(__name__)

TEMPLATES: Dict[str, str] = {
    "FROM": "FROM {{ inst.name }}",
    "MAINTAINER": "MAINTAINER {{ inst.name }}",
    "RUN": "RUN {{ inst.parameters | command_form(exec_form, newline) }}",
    "CMD": "CMD {{ inst.parameters | command_form(exec_form, newline) }}",
    "ENTRYPOINT": "ENTRYPOINT {{ inst.parameters | command_form(exec_form, newline) }}",
    "EXPOSE": "EXPOSE {{ inst.ports | join(' ') }}",
    "ENV": "ENV {{ inst.key }}={{ inst.value | env_value }}",
    "ADD": "ADD {{ inst.source | transfer(inst.destination) }}",
    "COPY": "COPY {{ inst.source | transfer(inst.destination) }}",
    "VOLUME": "VOLUME {{ inst.name }}",
    "USER": "USER {{ inst.name }}",
    "WORKDIR": "WORKDIR {{ inst.path }}",
    "ONBUILD": "ONBUILD {{ nested_line }}",
    "COMMENT": (
        "{% for line in inst.text.splitlines() or [''] %}"
        "#{% if line %} {{ line }}{% endif %}{% if not loop.last %}{{ newline }}{% endif %}"
        "{% endfor %}"
    ),
}

# Fields an instruction must have before it can be rendered.
# The second element lists fields for which an empty string is acceptable.
REQUIRED_FIELDS: Dict[InstructionKind, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    InstructionKind.FROM: (("name",), ()),
    InstructionKind.MAINTAINER: (("name",), ()),
    InstructionKind.RUN: (("parameters",), ()),
    InstructionKind.CMD: (("parameters",), ()),
    InstructionKind.ENTRYPOINT: (("parameters",), ()),
    InstructionKind.EXPOSE: (("ports",), ()),
    InstructionKind.ENV: (("key", "value"), ("value",)),
    InstructionKind.ADD: (("source", "destination"), ()),
    InstructionKind.COPY: (("source", "destination"), ()),
    InstructionKind.VOLUME: (("name",), ()),
    InstructionKind.USER: (("name",), ()),
    InstructionKind.WORKDIR: (("path",), ()),
    InstructionKind.ONBUILD: (("nested",), ()),
    InstructionKind.COMMENT: (("text",), ("text",)),
}

# Fields written verbatim on the instruction line; they must stay on one line.
SINGLE_LINE_FIELDS: Dict[InstructionKind, Tuple[str, ...]] = {
    InstructionKind.FROM: ("name",),
    InstructionKind.MAINTAINER: ("name",),
    InstructionKind.ENV: ("key",),
    InstructionKind.ADD: ("source", "destination"),
    InstructionKind.COPY: ("source", "destination"),
    InstructionKind.VOLUME: ("name",),
    InstructionKind.USER: ("name",),
    InstructionKind.WORKDIR: ("path",),
}

_QUOTE_CHARS = set("\"'\\")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _needs_quoting(value: str) -> bool:
    return any(ch.isspace() or ch in _QUOTE_CHARS for ch in value)


def command_form(parameters: List[str], exec_form: str = "auto", newline: str = "\n") -> str:
    """
    Formats RUN/CMD/ENTRYPOINT parameters in shell or exec (JSON array) form.

    Line breaks inside a shell form command are written as backslash
    continuations, so the instruction still parses as a single instruction.
    """
    if exec_form == "never" or (exec_form == "auto" and len(parameters) == 1):
        command = " ".join(parameters).strip("\r\n")
        if command.endswith("\\"):
            raise DescriptorExportError(
                "Shell form command must not end with a backslash",
                detail="trailing backslash",
            )
        return _LINE_BREAK.sub(lambda _: " \\" + newline, command)
    return json.dumps(list(parameters), ensure_ascii=False)


def env_value(value: str) -> str:
    """Quotes an ENV value when it is empty or contains whitespace or quotes."""
    if value == "" or _needs_quoting(value):
        return json.dumps(value, ensure_ascii=False)
    return value


def transfer(source: str, destination: str) -> str:
    """Formats ADD/COPY arguments, switching to JSON form for paths with whitespace."""
    if _needs_quoting(source) or _needs_quoting(destination):
        return json.dumps([source, destination], ensure_ascii=False)
    return f"{source} {destination}"


class DockerfileExporter:
    """
    Renders descriptors as Dockerfiles.

    Instances are callables matching the exporter strategy expected by
    ``DockerDescriptor.export_to``: ``exporter(descriptor, sink)``.
    """
    def __init__(self, settings: Optional[ExportSettings] = None):
        """
        Initializes the exporter.

        :param settings: Rendering options; defaults are used when omitted.
        """
        self.settings = settings or ExportSettings()
        self.environment = Environment(
            loader=DictLoader(TEMPLATES),
            undefined=StrictUndefined,
            autoescape=False,
        )
        self.environment.filters["command_form"] = command_form
        self.environment.filters["env_value"] = env_value
        self.environment.filters["transfer"] = transfer

    def __call__(self, descriptor: Any, sink: Any) -> None:
        self.render(descriptor, sink)

    def render(self, descriptor: Any, sink: Any) -> None:
        """
        Writes the Dockerfile text of ``descriptor`` to ``sink``.

        :param descriptor: The descriptor to render.
        :param sink: Text or binary file-like object, owned by the caller.
        :raises DescriptorExportError: If an instruction cannot be rendered or
            the sink cannot be written.
        """
        text = self.render_text(descriptor)
        if isinstance(sink, (io.RawIOBase, io.BufferedIOBase)):
            payload = text.encode(self.settings.encoding)
        else:
            payload = text
        try:
            sink.write(payload)
        except (OSError, TypeError, ValueError, AttributeError) as exc:
            raise DescriptorExportError(
                f"Failed to write Dockerfile: {exc}", detail=str(exc)
            ) from exc

    def render_text(self, descriptor: Any) -> str:
        """
        Renders ``descriptor`` to a string, one line per instruction.
        """
        lines = [self.render_line(instruction) for instruction in descriptor.get_instructions()]
        logger.debug("Rendered %d instruction(s)", len(lines))
        if not lines:
            return ""
        newline = self.settings.newline
        return newline.join(lines) + newline

    def render_line(self, instruction: Any) -> str:
        """
        Renders a single instruction (ONBUILD includes its wrapped instruction).
        """
        kind = InstructionKind.coerce(getattr(instruction, "kind", None))
        self._check_required(kind, instruction)
        self._check_single_line(kind, instruction)
        context = {
            "inst": instruction,
            "exec_form": self.settings.exec_form,
            "newline": self.settings.newline,
        }
        if kind is InstructionKind.ONBUILD:
            nested_kind = InstructionKind.coerce(getattr(instruction.nested, "kind", None))
            if nested_kind in (InstructionKind.ONBUILD, InstructionKind.COMMENT):
                raise DescriptorExportError(
                    f"ONBUILD cannot wrap a {nested_kind.value} instruction",
                    detail=f"nested {nested_kind.value}",
                )
            context["nested_line"] = self.render_line(instruction.nested)
        return self.environment.get_template(kind.value).render(**context)

    def _check_required(self, kind: InstructionKind, instruction: Any):
        required, allow_empty = REQUIRED_FIELDS[kind]
        for field in required:
            value = getattr(instruction, field, None)
            empty = value is None or (
                field not in allow_empty and hasattr(value, "__len__") and len(value) == 0
            )
            if empty:
                raise DescriptorExportError(
                    f"{kind.value} instruction has no {field}",
                    detail=f"missing {field}",
                )

    def _check_single_line(self, kind: InstructionKind, instruction: Any):
        for field in SINGLE_LINE_FIELDS.get(kind, ()):
            value = getattr(instruction, field)
            # a trailing backslash would continue the instruction onto the next line
            if _LINE_BREAK.search(value) or value.endswith("\\"):
                raise DescriptorExportError(
                    f"{kind.value} instruction {field} must be a single line: {value!r}",
                    detail=f"line break in {field}",
                )


def render_dockerfile(descriptor: Any, sink: Any) -> None:
    """
    Default exporter: renders ``descriptor`` to ``sink`` with default settings.
    """
    DockerfileExporter().render(descriptor, sink)
