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
Utilities for interpolating ${VAR} references in descriptor documents.
"""
import re
from typing import Any, Mapping

from ..exceptions import DescriptorArgumentError


class EnvironmentInterpolator:
    """
    Interpolates variables from a context mapping.

    Supported forms:
        ``${VAR}``          value of VAR (error if unset and strict)
        ``${VAR:-default}`` default if VAR is unset or empty
        ``${VAR-default}``  default if VAR is unset
        ``${VAR:+alt}``     alt if VAR is set and not empty, else empty
        ``${VAR:?message}`` error with message if VAR is unset or empty
        ``$$``              a literal ``$``, e.g. ``$${PATH}`` keeps ``${PATH}``
                            for Docker to expand at build time
    """
    PATTERN = re.compile(
        r'\$\$|\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<op>:-|-|:\+|:\?)(?P<arg>[^}]*))?\}'
    )

    def __init__(self, context: Mapping[str, str], strict: bool = True):
        """
        :param context: Variables available for interpolation.
        :param strict: Raise on unset ``${VAR}`` instead of substituting ''.
        """
        self.context = context
        self.strict = strict

    def interpolate(self, template: str) -> str:
        """
        Interpolates every reference in ``template``.

        :raises DescriptorArgumentError: For unset variables in strict mode or
            failed ``${VAR:?message}`` checks.
        """
        return self.PATTERN.sub(self._replace, template)

    def interpolate_values(self, value: Any) -> Any:
        """
        Interpolates every string inside nested lists and mappings.
        Mapping keys are left untouched.
        """
        if isinstance(value, str):
            return self.interpolate(value)
        if isinstance(value, list):
            return [self.interpolate_values(item) for item in value]
        if isinstance(value, dict):
            return {key: self.interpolate_values(item) for key, item in value.items()}
        return value

    def _replace(self, match: "re.Match") -> str:
        if match.group(0) == "$$":
            return "$"
        name = match.group("name")
        op = match.group("op")
        arg = match.group("arg")
        value = self.context.get(name)

        if op == ":-":
            return value if value else arg
        if op == "-":
            return arg if value is None else value
        if op == ":+":
            return arg if value else ""
        if op == ":?":
            if not value:
                raise DescriptorArgumentError(arg or f"Variable {name} is required")
            return value
        if value is None:
            if self.strict:
                raise DescriptorArgumentError(f"Variable {name} not found in context")
            return ""
        return value
