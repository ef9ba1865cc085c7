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
Parser turning Dockerfile text into a DockerDescriptor.

Parsing is best effort: lines the model cannot represent (LABEL, ARG,
HEALTHCHECK, malformed arguments) are skipped with a warning.
"""
import json
import logging
import re
import shlex
from typing import Iterator, List, Optional, Tuple

from ..BUILDERS.instruction_factory import InstructionFactory
from ..MODELS.descriptor import DockerDescriptor
from ..MODELS.instructions import Instruction, InstructionKind

logger = logging.getLogger(__name__)

INSTRUCTION_PATTERN = re.compile(r'^([A-Za-z]+)(?:\s+(.*))?$')

COMMENT = "#"


class DockerfileParser:
    """
    Parser for Dockerfile instructions.
    """
    def parse(self, dockerfile_path: str) -> DockerDescriptor:
        """
        Parses a Dockerfile from a file path.

        Args:
            dockerfile_path (str): Path to the Dockerfile.

        Returns:
            DockerDescriptor: Descriptor holding the parsed instructions.
        """
        with open(dockerfile_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> DockerDescriptor:
        """
        Parses a Dockerfile from a string content.

        Args:
            content (str): Content of the Dockerfile.

        Returns:
            DockerDescriptor: Descriptor holding the parsed instructions. The
            original text is kept as its ``content``.
        """
        descriptor = DockerDescriptor(content)
        for keyword, arguments in self._logical_lines(content):
            for instruction in self._instructions(descriptor, keyword, arguments):
                descriptor.add_instruction(instruction)
        logger.debug("Parsed %d instruction(s)", len(descriptor))
        return descriptor

    def _logical_lines(self, content: str) -> Iterator[Tuple[str, str]]:
        """
        Yields (keyword, arguments) pairs, joining line continuations.
        Comments outside continuations are yielded with the keyword '#'.
        """
        pending: List[str] = []
        for raw in content.splitlines():
            line = raw.strip()
            if not pending and line.startswith(COMMENT):
                yield COMMENT, line[1:].strip()
                continue
            # blank lines and comments inside a continuation are dropped
            if not line or line.startswith(COMMENT):
                continue
            if line.endswith('\\'):
                pending.append(line[:-1].strip())
                continue
            pending.append(line)
            yield self._split(' '.join(part for part in pending if part))
            pending = []
        if pending:
            yield self._split(' '.join(part for part in pending if part))

    def _split(self, line: str) -> Tuple[str, str]:
        match = INSTRUCTION_PATTERN.match(line)
        if not match:
            return '', line
        return match.group(1).upper(), (match.group(2) or '').strip()

    def _instructions(self, descriptor: DockerDescriptor, keyword: str, args_str: str) -> List[Instruction]:
        if keyword == COMMENT:
            return [InstructionFactory.create(InstructionKind.COMMENT, descriptor).set_text(args_str)]

        try:
            kind = InstructionKind(keyword)
        except ValueError:
            kind = None
        if kind is None or kind is InstructionKind.COMMENT:
            logger.warning("Skipping unsupported instruction: %s %s", keyword, args_str)
            return []
        if not args_str:
            logger.warning("Skipping %s without arguments", keyword)
            return []

        def create() -> Instruction:
            return InstructionFactory.create(kind, descriptor)

        if kind in (InstructionKind.FROM, InstructionKind.MAINTAINER, InstructionKind.USER):
            return [create().set_name(args_str)]
        if kind is InstructionKind.WORKDIR:
            return [create().set_path(args_str)]
        if kind is InstructionKind.VOLUME:
            names = self._exec_form(args_str) or [args_str]
            return [create().set_name(name) for name in names]
        if kind in (InstructionKind.RUN, InstructionKind.CMD, InstructionKind.ENTRYPOINT):
            return [create().set_parameters(*(self._exec_form(args_str) or [args_str]))]
        if kind is InstructionKind.EXPOSE:
            ports = self._ports(args_str)
            return [create().set_ports(*ports)] if ports else []
        if kind is InstructionKind.ENV:
            return [create().set_key(key).set_value(value) for key, value in self._env_pairs(args_str)]
        if kind in (InstructionKind.ADD, InstructionKind.COPY):
            paths = self._transfer_paths(keyword, args_str)
            return [create().set_source(paths[0]).set_destination(paths[1])] if paths else []
        if kind is InstructionKind.ONBUILD:
            nested_keyword, nested_args = self._split(args_str)
            if nested_keyword == InstructionKind.ONBUILD.value:
                logger.warning("Skipping chained ONBUILD: %s", args_str)
                return []
            return [
                create().set_nested(nested)
                for nested in self._instructions(descriptor, nested_keyword, nested_args)
            ]
        return []

    def _exec_form(self, args_str: str) -> Optional[List[str]]:
        # Handle JSON/Exec form vs Shell form
        if not (args_str.startswith('[') and args_str.endswith(']')):
            return None
        try:
            args = json.loads(args_str)
        except json.JSONDecodeError:
            # Not valid JSON, treat as shell form
            return None
        if not isinstance(args, list) or not all(isinstance(arg, str) for arg in args):
            return None
        return args

    def _ports(self, args_str: str) -> List[int]:
        ports = []
        for token in args_str.split():
            # 8080/tcp -> 8080
            number = token.split('/', 1)[0]
            if number.isdecimal():
                ports.append(int(number))
            else:
                logger.warning("Skipping non-numeric EXPOSE port: %s", token)
        return ports

    def _env_pairs(self, args_str: str) -> List[Tuple[str, str]]:
        # ENV KEY VALUE (legacy) or ENV KEY=VALUE [KEY=VALUE ...]
        first = args_str.split(None, 1)[0]
        if '=' not in first:
            parts = args_str.split(None, 1)
            if len(parts) != 2:
                logger.warning("Skipping ENV without value: %s", args_str)
                return []
            return [(parts[0], parts[1])]
        try:
            tokens = shlex.split(args_str)
        except ValueError as exc:
            logger.warning("Skipping malformed ENV %s: %s", args_str, exc)
            return []
        pairs = []
        for token in tokens:
            if '=' not in token:
                logger.warning("Skipping ENV token without '=': %s", token)
                continue
            key, value = token.split('=', 1)
            pairs.append((key, value))
        return pairs

    def _transfer_paths(self, keyword: str, args_str: str) -> Optional[Tuple[str, str]]:
        paths = self._exec_form(args_str)
        if paths is None:
            try:
                paths = shlex.split(args_str)
            except ValueError as exc:
                logger.warning("Skipping malformed %s %s: %s", keyword, args_str, exc)
                return None
        flags = [path for path in paths if path.startswith('--')]
        if flags:
            logger.warning("Dropping unsupported %s flags: %s", keyword, ' '.join(flags))
            paths = [path for path in paths if not path.startswith('--')]
        if len(paths) != 2:
            logger.warning("Skipping %s that does not have exactly one source and destination: %s",
                           keyword, args_str)
            return None
        return paths[0], paths[1]
