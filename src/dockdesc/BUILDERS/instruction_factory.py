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
Factory constructing descriptor instructions from their kind tag.
"""
import logging
from typing import Any, Dict, Optional, Type

from ..MODELS.instructions import (
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

INSTRUCTION_TYPES: Dict[InstructionKind, Type[Instruction]] = {
    InstructionKind.FROM: FromInstruction,
    InstructionKind.MAINTAINER: MaintainerInstruction,
    InstructionKind.RUN: RunInstruction,
    InstructionKind.CMD: CmdInstruction,
    InstructionKind.EXPOSE: ExposeInstruction,
    InstructionKind.ENV: EnvInstruction,
    InstructionKind.ADD: AddInstruction,
    InstructionKind.COPY: CopyInstruction,
    InstructionKind.ENTRYPOINT: EntrypointInstruction,
    InstructionKind.VOLUME: VolumeInstruction,
    InstructionKind.USER: UserInstruction,
    InstructionKind.WORKDIR: WorkdirInstruction,
    InstructionKind.ONBUILD: OnBuildInstruction,
    InstructionKind.COMMENT: CommentInstruction,
}


class InstructionFactory:
    """
    Stateless factory for descriptor instructions.
    """
    @staticmethod
    def create(kind: Any, owner: Optional[Any] = None) -> Instruction:
        """
        Creates an empty instruction of the given kind.

        Args:
            kind: Kind selector (InstructionKind, keyword or Instruction subclass).
            owner: Descriptor the instruction navigates back to with ``up()``.

        Returns:
            Instruction: The new instruction, bound to ``owner`` if one is given.
        """
        kind = InstructionKind.coerce(kind)
        instruction = INSTRUCTION_TYPES[kind]()
        if owner is not None:
            instruction.bind_owner(owner)
        logger.debug("Created %s instruction", kind.value)
        return instruction
