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
Settings controlling how descriptors are rendered, loaded from the
environment and optional .env files.
"""
import codecs
import logging
import os
from typing import Dict, Literal, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ValidationError, field_validator

from ..exceptions import DescriptorArgumentError

ENV_PREFIX = "DOCKDESC_"

NEWLINE_ALIASES = {
    "lf": "\n",
    "\\n": "\n",
    "crlf": "\r\n",
    "\\r\\n": "\r\n",
}


class ExportSettings(BaseModel):
    """
    Rendering options for the Dockerfile exporter.
    """
    # auto: shell form for a single parameter, exec (JSON) form otherwise
    exec_form: Literal["auto", "always", "never"] = "auto"
    newline: str = "\n"
    encoding: str = "utf-8"
    log_level: str = "WARNING"

    @field_validator("exec_form", mode="before")
    @classmethod
    def _lower_exec_form(cls, value):
        return value.lower() if isinstance(value, str) else value

    @field_validator("newline", mode="before")
    @classmethod
    def _resolve_newline(cls, value):
        if isinstance(value, str):
            value = NEWLINE_ALIASES.get(value.lower(), value)
        if value not in ("\n", "\r\n"):
            raise ValueError("newline must be LF or CRLF")
        return value

    @field_validator("encoding")
    @classmethod
    def _check_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"unknown encoding {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level {value!r}")
        return value


def _prefixed(values: Mapping[str, Optional[str]]) -> Dict[str, str]:
    return {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in values.items()
        if key.startswith(ENV_PREFIX) and value is not None
    }


def load_settings(env_file: Optional[str] = None,
                  environ: Optional[Mapping[str, str]] = None) -> ExportSettings:
    """
    Builds ExportSettings from DOCKDESC_* variables.

    Values from ``environ`` (the process environment by default) override
    values read from ``env_file``, which override the defaults.

    :param env_file: Optional path to a .env file.
    :param environ: Mapping used instead of ``os.environ``.
    :return: The validated settings.
    :raises DescriptorArgumentError: If a value is invalid.
    """
    values: Dict[str, str] = {}
    if env_file:
        values.update(_prefixed(dotenv_values(env_file)))
    values.update(_prefixed(os.environ if environ is None else environ))
    try:
        return ExportSettings(**values)
    except ValidationError as exc:
        raise DescriptorArgumentError(f"Invalid dockdesc settings: {exc}") from exc
