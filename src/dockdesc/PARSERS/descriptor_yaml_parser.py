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
Parser for YAML descriptor documents.

A document lists instructions as single-key mappings::

    instructions:
      - from: python:3.12-slim
      - run: pip install -r requirements.txt
      - expose: [80, 443]
      - env: {MODE: prod}
      - copy: {source: ., destination: /app}
      - onbuild: {run: make}
"""
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from ..exceptions import DescriptorArgumentError
from ..MODELS.descriptor import DockerDescriptor
from ..MODELS.instructions import Instruction, InstructionKind
from ..UTILS.string_interpolation import EnvironmentInterpolator

logger = logging.getLogger(__name__)

# Descriptor accessor used for each kind
ACCESSORS: Dict[InstructionKind, str] = {
    InstructionKind.FROM: "from_",
    InstructionKind.MAINTAINER: "maintainer",
    InstructionKind.RUN: "run",
    InstructionKind.CMD: "cmd",
    InstructionKind.EXPOSE: "expose",
    InstructionKind.ENV: "env",
    InstructionKind.ADD: "add",
    InstructionKind.COPY: "copy",
    InstructionKind.ENTRYPOINT: "entrypoint",
    InstructionKind.VOLUME: "volume",
    InstructionKind.USER: "user",
    InstructionKind.WORKDIR: "workdir",
    InstructionKind.ONBUILD: "onbuild",
    InstructionKind.COMMENT: "comment",
}


class DescriptorYamlParser:
    """
    Parser for YAML descriptor files.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional environment context for interpolation.

        :param context: A dictionary of variables for ${VAR} interpolation.
            Defaults to the process environment.
        """
        self.context = dict(os.environ) if context is None else context

    def parse(self, descriptor_path: str) -> DockerDescriptor:
        """
        Parses a YAML descriptor from a path.

        :param descriptor_path: Path to the YAML file.
        :return: The built descriptor.
        """
        with open(descriptor_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> DockerDescriptor:
        """
        Parses a YAML descriptor from a string.

        :param content: YAML content.
        :return: The built descriptor. Singleton kinds listed twice update
            the same instruction.
        :raises DescriptorArgumentError: If the document is not valid.
        """
        try:
            data = yaml.safe_load(content)
        except (yaml.YAMLError, ValueError) as exc:
            raise DescriptorArgumentError(f"Invalid descriptor YAML: {exc}") from exc
        if not data:
            data = {}
        if not isinstance(data, dict):
            raise DescriptorArgumentError("Descriptor document must be a mapping")

        items = data.get('instructions') or []
        if not isinstance(items, list):
            raise DescriptorArgumentError("'instructions' must be a list")
        items = EnvironmentInterpolator(self.context).interpolate_values(items)

        descriptor = DockerDescriptor()
        for position, item in enumerate(items, start=1):
            kind, value = self._entry(position, item)
            self._apply(descriptor, kind, value)
        logger.debug("Loaded %d instruction(s) from YAML", len(descriptor))
        return descriptor

    def _entry(self, position: int, item: Any):
        if not isinstance(item, dict) or len(item) != 1:
            raise DescriptorArgumentError(
                f"Instruction #{position} must be a mapping with a single key"
            )
        (key, value), = item.items()
        return InstructionKind.coerce(str(key)), value

    def _apply(self, descriptor: DockerDescriptor, kind: InstructionKind, value: Any):
        accessor = getattr(descriptor, ACCESSORS[kind])
        # ENV mappings with several pairs become one ENV per pair
        if kind is InstructionKind.ENV and isinstance(value, dict) and len(value) > 1:
            for key, item in value.items():
                self._configure(accessor(), kind, {key: item})
            return
        self._configure(accessor(), kind, value)

    def _configure(self, instruction: Instruction, kind: InstructionKind, value: Any):
        if kind in (InstructionKind.FROM, InstructionKind.MAINTAINER,
                    InstructionKind.USER, InstructionKind.VOLUME):
            instruction.set_name(self._scalar(kind, value))
        elif kind is InstructionKind.WORKDIR:
            instruction.set_path(self._scalar(kind, value))
        elif kind is InstructionKind.COMMENT:
            instruction.set_text(self._scalar(kind, value))
        elif kind in (InstructionKind.RUN, InstructionKind.CMD, InstructionKind.ENTRYPOINT):
            instruction.set_parameters(*[str(item) for item in self._to_list(value)])
        elif kind is InstructionKind.EXPOSE:
            instruction.set_ports(*self._to_list(value))
        elif kind is InstructionKind.ENV:
            key, item = self._env_pair(value)
            instruction.set_key(key).set_value(item)
        elif kind in (InstructionKind.ADD, InstructionKind.COPY):
            source, destination = self._transfer(kind, value)
            instruction.set_source(source).set_destination(destination)
        elif kind is InstructionKind.ONBUILD:
            if not isinstance(value, dict) or len(value) != 1:
                raise DescriptorArgumentError("onbuild must map a single instruction kind to its value")
            (key, nested_value), = value.items()
            nested_kind = InstructionKind.coerce(str(key))
            self._configure(instruction.set_instruction(nested_kind), nested_kind, nested_value)

    def _scalar(self, kind: InstructionKind, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            raise DescriptorArgumentError(f"{kind.value.lower()} expects a single value")
        return str(value)

    def _to_list(self, val: Any) -> List[Any]:
        """
        Helper to ensure a value is a list.

        :param val: The value to convert.
        :return: A list of values.
        """
        if val is None:
            return []
        if isinstance(val, (list, tuple)):
            return list(val)
        return [val]

    def _env_pair(self, value: Any):
        if isinstance(value, dict) and len(value) == 1:
            (key, item), = value.items()
            return str(key), '' if item is None else str(item)
        if isinstance(value, str) and '=' in value:
            key, item = value.split('=', 1)
            return key, item
        raise DescriptorArgumentError("env expects KEY=VALUE or a {KEY: VALUE} mapping")

    def _transfer(self, kind: InstructionKind, value: Any):
        if isinstance(value, dict) and 'source' in value and 'destination' in value:
            return str(value['source']), str(value['destination'])
        if isinstance(value, list) and len(value) == 2:
            return str(value[0]), str(value[1])
        raise DescriptorArgumentError(
            f"{kind.value.lower()} expects [source, destination] or a source/destination mapping"
        )
