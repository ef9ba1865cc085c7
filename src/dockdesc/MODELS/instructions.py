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
Models for the individual Dockerfile instructions of a descriptor.

Every instruction carries an explicit ``kind`` tag, fluent setters that
mutate the instance in place and return it, and ``up()`` which navigates
back to the descriptor that created it.
"""
import weakref
from enum import Enum
from typing import Any, ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError

from ..exceptions import DescriptorArgumentError, DetachedInstructionError


class InstructionKind(str, Enum):
    """
    Tag identifying the kind of an instruction. Values are the Dockerfile keywords.
    """
    FROM = "FROM"
    MAINTAINER = "MAINTAINER"
    RUN = "RUN"
    CMD = "CMD"
    EXPOSE = "EXPOSE"
    ENV = "ENV"
    ADD = "ADD"
    COPY = "COPY"
    ENTRYPOINT = "ENTRYPOINT"
    VOLUME = "VOLUME"
    USER = "USER"
    WORKDIR = "WORKDIR"
    ONBUILD = "ONBUILD"
    COMMENT = "COMMENT"

    @property
    def is_singleton(self) -> bool:
        """True if the descriptor accessor for this kind reuses an existing instance."""
        return self in SINGLETON_KINDS

    @classmethod
    def coerce(cls, value: Any) -> "InstructionKind":
        """
        Resolves a kind selector to an InstructionKind.

        :param value: A member, its keyword (any case) or an Instruction subclass.
        :return: The matching InstructionKind.
        :raises DescriptorArgumentError: If the selector is None or unknown.
        """
        if value is None:
            raise DescriptorArgumentError("Instruction kind must not be None")
        if isinstance(value, cls):
            return value
        if isinstance(value, type) and issubclass(value, Instruction) and value.kind is not None:
            return value.kind
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise DescriptorArgumentError(f"Unknown instruction kind: {value!r}")


SINGLETON_KINDS = frozenset({
    InstructionKind.FROM,
    InstructionKind.MAINTAINER,
    InstructionKind.CMD,
    InstructionKind.ENTRYPOINT,
    InstructionKind.USER,
})


def _flatten(values: tuple) -> List[Any]:
    # set_parameters("a", "b") and set_parameters(["a", "b"]) are equivalent
    if len(values) == 1 and isinstance(values[0], (list, tuple)):
        return list(values[0])
    return list(values)


class Instruction(BaseModel):
    """
    Base class of all descriptor instructions.
    """
    model_config = ConfigDict(validate_assignment=True)

    kind: ClassVar[Optional[InstructionKind]] = None

    # weakref.ref to the owning descriptor, set once by the factory
    _owner: Any = PrivateAttr(default=None)

    def bind_owner(self, owner: Any) -> "Instruction":
        """
        Associates this instruction with the descriptor that created it.

        :param owner: The owning descriptor.
        :raises DescriptorArgumentError: If the instruction already has an owner.
        """
        if owner is None:
            raise DescriptorArgumentError("Owner must not be None")
        if self._owner is not None:
            raise DescriptorArgumentError(
                f"{self.kind.value} instruction is already bound to a descriptor"
            )
        self._owner = weakref.ref(owner)
        return self

    @property
    def owner(self) -> Optional[Any]:
        """The owning descriptor, or None if unbound or already collected."""
        if self._owner is None:
            return None
        return self._owner()

    def up(self) -> Any:
        """
        Returns the descriptor that created this instruction.

        :raises DetachedInstructionError: If there is no live owner.
        """
        owner = self.owner
        if owner is None:
            raise DetachedInstructionError(
                f"{self.kind.value} instruction is not attached to a descriptor"
            )
        return owner

    def _assign(self, field: str, value: Any):
        try:
            setattr(self, field, value)
        except ValidationError as exc:
            message = exc.errors()[0]["msg"]
            raise DescriptorArgumentError(
                f"Invalid {field} for {self.kind.value} instruction: {message}"
            ) from exc
        return self


class _NamedInstruction(Instruction):
    name: Optional[str] = None

    def set_name(self, name: str):
        """Sets the name and returns this instruction."""
        return self._assign("name", name)


class _CommandInstruction(Instruction):
    parameters: List[str] = []

    def set_parameters(self, *parameters: str):
        """
        Replaces the parameters, keeping their order.

        A single parameter renders in shell form, several in exec form.
        """
        return self._assign("parameters", _flatten(parameters))


class _TransferInstruction(Instruction):
    source: Optional[str] = None
    destination: Optional[str] = None

    def set_source(self, source: str):
        return self._assign("source", source)

    def set_destination(self, destination: str):
        return self._assign("destination", destination)


class FromInstruction(_NamedInstruction):
    """FROM: the base image of the build."""
    kind: ClassVar[InstructionKind] = InstructionKind.FROM


class MaintainerInstruction(_NamedInstruction):
    """MAINTAINER: the author of the image."""
    kind: ClassVar[InstructionKind] = InstructionKind.MAINTAINER


class RunInstruction(_CommandInstruction):
    """RUN: a command executed while building the image."""
    kind: ClassVar[InstructionKind] = InstructionKind.RUN


class CmdInstruction(_CommandInstruction):
    """CMD: the default command of a container."""
    kind: ClassVar[InstructionKind] = InstructionKind.CMD


class EntrypointInstruction(_CommandInstruction):
    """ENTRYPOINT: the executable a container runs."""
    kind: ClassVar[InstructionKind] = InstructionKind.ENTRYPOINT


class ExposeInstruction(Instruction):
    """EXPOSE: ports the container listens on."""
    kind: ClassVar[InstructionKind] = InstructionKind.EXPOSE

    ports: List[int] = []

    def set_ports(self, *ports: int) -> "ExposeInstruction":
        return self._assign("ports", _flatten(ports))


class EnvInstruction(Instruction):
    """ENV: a single environment variable."""
    kind: ClassVar[InstructionKind] = InstructionKind.ENV

    key: Optional[str] = None
    value: Optional[str] = None

    def set_key(self, key: str) -> "EnvInstruction":
        return self._assign("key", key)

    def set_value(self, value: str) -> "EnvInstruction":
        return self._assign("value", value)


class AddInstruction(_TransferInstruction):
    """ADD: copies files, URLs or archives into the image."""
    kind: ClassVar[InstructionKind] = InstructionKind.ADD


class CopyInstruction(_TransferInstruction):
    """COPY: copies files from the build context into the image."""
    kind: ClassVar[InstructionKind] = InstructionKind.COPY


class VolumeInstruction(_NamedInstruction):
    """VOLUME: a mount point."""
    kind: ClassVar[InstructionKind] = InstructionKind.VOLUME


class UserInstruction(_NamedInstruction):
    """USER: the user subsequent instructions run as."""
    kind: ClassVar[InstructionKind] = InstructionKind.USER


class WorkdirInstruction(Instruction):
    """WORKDIR: the working directory of subsequent instructions."""
    kind: ClassVar[InstructionKind] = InstructionKind.WORKDIR

    path: Optional[str] = None

    def set_path(self, path: str) -> "WorkdirInstruction":
        return self._assign("path", path)


class CommentInstruction(Instruction):
    """A ``#`` comment line."""
    kind: ClassVar[InstructionKind] = InstructionKind.COMMENT

    text: Optional[str] = None

    def set_text(self, text: str) -> "CommentInstruction":
        return self._assign("text", text)


class OnBuildInstruction(Instruction):
    """
    ONBUILD: a trigger instruction executed when the image is used as a base.

    The wrapped instruction is created with ``set_instruction`` and is
    configured directly by the caller.
    """
    kind: ClassVar[InstructionKind] = InstructionKind.ONBUILD

    nested: Optional[Instruction] = None

    def set_instruction(self, kind: Any) -> Instruction:
        """
        Creates the wrapped instruction and returns it (not this wrapper).

        :param kind: Kind selector of the wrapped instruction.
        :return: The new wrapped instruction, bound to the same descriptor.
        """
        from ..BUILDERS.instruction_factory import InstructionFactory

        kind = InstructionKind.coerce(kind)
        self._check_nested_kind(kind)
        nested = InstructionFactory.create(kind, self.owner)
        self._assign("nested", nested)
        return nested

    def set_nested(self, instruction: Instruction) -> "OnBuildInstruction":
        """Wraps an already constructed instruction."""
        if instruction is None:
            raise DescriptorArgumentError("ONBUILD requires an instruction to wrap")
        self._check_nested_kind(InstructionKind.coerce(getattr(instruction, "kind", None)))
        return self._assign("nested", instruction)

    def _check_nested_kind(self, kind: InstructionKind):
        if kind is InstructionKind.ONBUILD:
            raise DescriptorArgumentError("ONBUILD cannot wrap another ONBUILD instruction")
        if kind is InstructionKind.COMMENT:
            raise DescriptorArgumentError("ONBUILD cannot wrap a comment")
