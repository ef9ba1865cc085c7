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
The Docker descriptor: an ordered, mutable sequence of build instructions
with a fluent API for adding, querying and removing them.
"""
import io
import logging
from typing import Any, Callable, Iterator, List, Optional, Union

from ..BUILDERS.instruction_factory import InstructionFactory
from ..exceptions import DescriptorArgumentError, DescriptorExportError
from .instructions import (
    AddInstruction,
    CmdInstruction,
    CommentInstruction,
    CopyInstruction,
    EntrypointInstruction,
    EnvInstruction,
    ExposeInstruction,
    FromInstruction,
    Instruction,
    InstructionKind,
    MaintainerInstruction,
    OnBuildInstruction,
    RunInstruction,
    UserInstruction,
    VolumeInstruction,
    WorkdirInstruction,
)

logger = logging.getLogger(__name__)

Exporter = Callable[["DockerDescriptor", Any], None]


class DockerDescriptor:
    """
    Ordered container of Dockerfile instructions.

    Accessors of singleton kinds (FROM, MAINTAINER, CMD, ENTRYPOINT, USER)
    return the existing instruction when there is one; accessors of every
    other kind append a new instruction on each call. Shorthand forms
    (``run("make")``) configure the instruction and return the descriptor.

    Example:
        descriptor = (DockerDescriptor()
                      .from_("python:3.12-slim")
                      .workdir("/app")
                      .copy(".", "/app")
                      .cmd("python", "app.py"))

    Instructions refer back to their descriptor weakly, so ``up()`` only works
    while the descriptor is referenced elsewhere. Keep the descriptor in a
    variable before navigating with it:

        descriptor = DockerDescriptor()
        descriptor.from_().set_name("alpine").up().run("apk update")

    whereas ``DockerDescriptor().from_().set_name("alpine").up()`` raises
    DetachedInstructionError once the temporary descriptor is collected.
    """
    def __init__(self, content: Optional[str] = None):
        """
        Initializes an empty descriptor.

        :param content: Raw Dockerfile text this descriptor was built from, if any.
            It is kept as-is and never parsed here.
        """
        self.content = content
        self.instructions: List[Instruction] = []

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def __repr__(self) -> str:
        return f"DockerDescriptor(instructions={len(self.instructions)})"

    def get_instructions(self) -> List[Instruction]:
        """Returns the instruction sequence in emission order."""
        return self.instructions

    # Export

    def export_to(self, sink: Any, exporter: Optional[Exporter] = None) -> None:
        """
        Writes this descriptor to ``sink`` as Dockerfile text.

        The sink is owned by the caller and is neither opened nor closed here.

        :param sink: A writable text or binary file-like object.
        :param exporter: Strategy ``exporter(descriptor, sink)``; defaults to
            the Dockerfile renderer.
        :raises DescriptorArgumentError: If ``sink`` is None.
        :raises DescriptorExportError: If rendering or writing fails.
        """
        if sink is None:
            raise DescriptorArgumentError("Can not export to a None sink")
        if exporter is None:
            from ..EXPORTERS.dockerfile_exporter import render_dockerfile
            exporter = render_dockerfile
        try:
            exporter(self, sink)
        except DescriptorExportError:
            raise
        except Exception as exc:
            raise DescriptorExportError(
                f"Failed to export descriptor: {exc}", detail=str(exc)
            ) from exc
        logger.debug("Exported descriptor with %d instructions", len(self.instructions))

    def export_as_string(self, exporter: Optional[Exporter] = None) -> str:
        """Renders this descriptor and returns the Dockerfile text."""
        buffer = io.StringIO()
        self.export_to(buffer, exporter)
        return buffer.getvalue()

    # Generic instruction handling

    def add_instruction(self, instruction: Instruction) -> "DockerDescriptor":
        """
        Appends any instruction verbatim, ignoring singleton rules.

        :param instruction: An object carrying a valid ``kind`` tag.
        :return: This descriptor.
        """
        if instruction is None:
            raise DescriptorArgumentError("Instruction must not be None")
        kind = InstructionKind.coerce(getattr(instruction, "kind", None))
        self.instructions.append(instruction)
        logger.debug("Added %s instruction at position %d", kind.value, len(self.instructions) - 1)
        return self

    def find_first(self, kind: Any) -> Optional[Instruction]:
        """
        Returns the first instruction of the given kind, or None.
        """
        kind = InstructionKind.coerce(kind)
        for instruction in self.instructions:
            if instruction.kind == kind:
                return instruction
        return None

    def find_all(self, kind: Any) -> List[Instruction]:
        """
        Returns a new list with every instruction of the given kind, in order.
        """
        kind = InstructionKind.coerce(kind)
        return [instruction for instruction in self.instructions if instruction.kind == kind]

    def remove_all(self, kind: Any) -> "DockerDescriptor":
        """
        Removes every instruction of the given kind, keeping the order of the rest.
        """
        kind = InstructionKind.coerce(kind)
        before = len(self.instructions)
        self.instructions[:] = [
            instruction for instruction in self.instructions if instruction.kind != kind
        ]
        removed = before - len(self.instructions)
        if removed:
            logger.debug("Removed %d %s instruction(s)", removed, kind.value)
        return self

    def _create(self, kind: InstructionKind) -> Instruction:
        instruction = InstructionFactory.create(kind, self)
        self.instructions.append(instruction)
        return instruction

    def _get_or_create(self, kind: InstructionKind) -> Instruction:
        instruction = self.find_first(kind)
        if instruction is None:
            instruction = self._create(kind)
        return instruction

    def _configure(self, kind: InstructionKind, configure: Callable[[Instruction], Any]) -> "DockerDescriptor":
        # Shorthand accessors: reuse the singleton if present, otherwise build a
        # new instruction and append it only once it is fully configured.
        instruction = self.find_first(kind) if kind.is_singleton else None
        if instruction is not None:
            configure(instruction)
            return self
        instruction = InstructionFactory.create(kind, self)
        configure(instruction)
        self.instructions.append(instruction)
        return self

    # FROM

    def from_(self, name: Optional[str] = None) -> Union[FromInstruction, "DockerDescriptor"]:
        """
        Without arguments returns the FROM instruction, creating it if needed.
        With a name, sets the base image and returns the descriptor.
        """
        if name is None:
            return self._get_or_create(InstructionKind.FROM)
        return self._configure(InstructionKind.FROM, lambda inst: inst.set_name(name))

    def get_from(self) -> Optional[FromInstruction]:
        return self.find_first(InstructionKind.FROM)

    def remove_from(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.FROM)

    # MAINTAINER

    def maintainer(self, name: Optional[str] = None) -> Union[MaintainerInstruction, "DockerDescriptor"]:
        if name is None:
            return self._get_or_create(InstructionKind.MAINTAINER)
        return self._configure(InstructionKind.MAINTAINER, lambda inst: inst.set_name(name))

    def get_maintainer(self) -> Optional[MaintainerInstruction]:
        return self.find_first(InstructionKind.MAINTAINER)

    def remove_maintainer(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.MAINTAINER)

    # CMD

    def cmd(self, *parameters: str) -> Union[CmdInstruction, "DockerDescriptor"]:
        """
        Without arguments returns the CMD instruction, creating it if needed.
        With parameters, replaces them and returns the descriptor.
        """
        if not parameters:
            return self._get_or_create(InstructionKind.CMD)
        return self._configure(InstructionKind.CMD, lambda inst: inst.set_parameters(*parameters))

    def get_cmd(self) -> Optional[CmdInstruction]:
        return self.find_first(InstructionKind.CMD)

    def remove_cmd(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.CMD)

    # ENTRYPOINT

    def entrypoint(self, *parameters: str) -> Union[EntrypointInstruction, "DockerDescriptor"]:
        if not parameters:
            return self._get_or_create(InstructionKind.ENTRYPOINT)
        return self._configure(InstructionKind.ENTRYPOINT, lambda inst: inst.set_parameters(*parameters))

    def get_entrypoint(self) -> Optional[EntrypointInstruction]:
        return self.find_first(InstructionKind.ENTRYPOINT)

    def remove_entrypoint(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.ENTRYPOINT)

    # USER

    def user(self, name: Optional[str] = None) -> Union[UserInstruction, "DockerDescriptor"]:
        if name is None:
            return self._get_or_create(InstructionKind.USER)
        return self._configure(InstructionKind.USER, lambda inst: inst.set_name(name))

    def get_user(self) -> Optional[UserInstruction]:
        return self.find_first(InstructionKind.USER)

    def remove_user(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.USER)

    # RUN

    def run(self, *parameters: str) -> Union[RunInstruction, "DockerDescriptor"]:
        """
        Without arguments appends and returns a new RUN instruction.
        With parameters, appends a configured RUN and returns the descriptor.
        """
        if not parameters:
            return self._create(InstructionKind.RUN)
        return self._configure(InstructionKind.RUN, lambda inst: inst.set_parameters(*parameters))

    def get_all_run(self) -> List[RunInstruction]:
        return self.find_all(InstructionKind.RUN)

    def remove_all_run(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.RUN)

    # EXPOSE

    def expose(self, *ports: int) -> Union[ExposeInstruction, "DockerDescriptor"]:
        if not ports:
            return self._create(InstructionKind.EXPOSE)
        return self._configure(InstructionKind.EXPOSE, lambda inst: inst.set_ports(*ports))

    def get_all_expose(self) -> List[ExposeInstruction]:
        return self.find_all(InstructionKind.EXPOSE)

    def remove_all_expose(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.EXPOSE)

    # ENV

    def env(self, key: Optional[str] = None, value: Optional[str] = None) -> Union[EnvInstruction, "DockerDescriptor"]:
        if key is None and value is None:
            return self._create(InstructionKind.ENV)
        return self._configure(InstructionKind.ENV, lambda inst: inst.set_key(key).set_value(value))

    def get_all_env(self) -> List[EnvInstruction]:
        return self.find_all(InstructionKind.ENV)

    def remove_all_env(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.ENV)

    # ADD

    def add(self, source: Optional[str] = None, destination: Optional[str] = None) -> Union[AddInstruction, "DockerDescriptor"]:
        if source is None and destination is None:
            return self._create(InstructionKind.ADD)
        return self._configure(InstructionKind.ADD, lambda inst: inst.set_source(source).set_destination(destination))

    def get_all_add(self) -> List[AddInstruction]:
        return self.find_all(InstructionKind.ADD)

    def remove_all_add(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.ADD)

    # COPY

    def copy(self, source: Optional[str] = None, destination: Optional[str] = None) -> Union[CopyInstruction, "DockerDescriptor"]:
        if source is None and destination is None:
            return self._create(InstructionKind.COPY)
        return self._configure(InstructionKind.COPY, lambda inst: inst.set_source(source).set_destination(destination))

    def get_all_copy(self) -> List[CopyInstruction]:
        return self.find_all(InstructionKind.COPY)

    def remove_all_copy(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.COPY)

    # VOLUME

    def volume(self, name: Optional[str] = None) -> Union[VolumeInstruction, "DockerDescriptor"]:
        if name is None:
            return self._create(InstructionKind.VOLUME)
        return self._configure(InstructionKind.VOLUME, lambda inst: inst.set_name(name))

    def get_all_volume(self) -> List[VolumeInstruction]:
        return self.find_all(InstructionKind.VOLUME)

    def remove_all_volume(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.VOLUME)

    # WORKDIR

    def workdir(self, path: Optional[str] = None) -> Union[WorkdirInstruction, "DockerDescriptor"]:
        if path is None:
            return self._create(InstructionKind.WORKDIR)
        return self._configure(InstructionKind.WORKDIR, lambda inst: inst.set_path(path))

    def get_all_workdir(self) -> List[WorkdirInstruction]:
        return self.find_all(InstructionKind.WORKDIR)

    def remove_all_workdir(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.WORKDIR)

    # ONBUILD

    def onbuild(self, kind: Any = None) -> Instruction:
        """
        Without arguments appends and returns a new ONBUILD instruction.
        With a kind selector, appends an ONBUILD wrapping a new instruction of
        that kind and returns the wrapped instruction, not the wrapper.
        """
        if kind is None:
            return self._create(InstructionKind.ONBUILD)
        onbuild = InstructionFactory.create(InstructionKind.ONBUILD, self)
        nested = onbuild.set_instruction(kind)
        self.instructions.append(onbuild)
        return nested

    def get_all_onbuild(self) -> List[OnBuildInstruction]:
        return self.find_all(InstructionKind.ONBUILD)

    def remove_all_onbuild(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.ONBUILD)

    # Comments

    def comment(self, text: Optional[str] = None) -> Union[CommentInstruction, "DockerDescriptor"]:
        if text is None:
            return self._create(InstructionKind.COMMENT)
        return self._configure(InstructionKind.COMMENT, lambda inst: inst.set_text(text))

    def get_all_comment(self) -> List[CommentInstruction]:
        return self.find_all(InstructionKind.COMMENT)

    def remove_all_comment(self) -> "DockerDescriptor":
        return self.remove_all(InstructionKind.COMMENT)
