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
Exceptions raised by the descriptor model, its exporter and its parsers.
"""
from typing import Optional


class DescriptorError(Exception):
    """Base class for all dockdesc errors."""


class DescriptorArgumentError(DescriptorError, ValueError):
    """
    Raised when an operation is invoked with a clearly invalid argument,
    e.g. a missing export sink, an unknown instruction kind or a port
    that is not an integer.
    """


class DescriptorExportError(DescriptorError):
    """
    Raised when a descriptor cannot be serialized.

    The underlying exception, if any, is available as ``__cause__``.
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail


class DetachedInstructionError(DescriptorError, RuntimeError):
    """Raised by ``up()`` when an instruction has no live owning descriptor."""
