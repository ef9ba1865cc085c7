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
dockdesc - Docker descriptors

An in-memory model and fluent API for assembling Dockerfiles
programmatically, and rendering them as build-file text.
"""

__version__ = "0.1.0"
__author__ = "Michael Maillet, Damien Davison, Sacha Davison"
__license__ = "Apache-2.0"

from .exceptions import (  # noqa: E402
    DescriptorArgumentError,
    DescriptorError,
    DescriptorExportError,
    DetachedInstructionError,
)
from .MODELS.descriptor import DockerDescriptor  # noqa: E402
from .MODELS.instructions import InstructionKind  # noqa: E402
