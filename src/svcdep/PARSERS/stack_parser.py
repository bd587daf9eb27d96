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
Parsers for stack YAML files listing the enabled services and their settings.
"""
import logging
import os
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..MODELS.service_instance import ServiceInstance
from ..MODELS.stack_config import StackConfig, StackConfigError, ValidationSettings
from ..UTILS.string_interpolation import EnvironmentInterpolator
from .catalog_parser import parse_descriptors

logger = logging.getLogger(__name__)

# Option names used by the module system, accepted next to the snake_case ones.
SERVICE_ALIASES = {"dataDir": "data_dir"}
DATABASE_ALIASES = {"type": "kind", "passwordFile": "password_file", "requireSsl": "require_ssl"}
SSL_ALIASES = {"enable": "enabled", "certificateKey": "certificate_key", "acmeHost": "acme_host"}


class StackParser:
    """
    Parser for stack files.

    A stack file has three top-level keys::

        settings:
          allow_privileged_ports: [traefik]
        catalog:
          myapp: {provides: [web.service], requires: [database.postgres]}
        services:
          postgres: {port: 5432, data_dir: /var/lib/postgresql}

    Services with ``enable: false`` are dropped.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional environment context for interpolation.

        :param context: A dictionary of environment variables for interpolation.
        """
        self.context = context if context is not None else dict(os.environ)

    def parse(self, stack_path: str) -> StackConfig:
        """
        Parses a stack file from a path.

        :param stack_path: Path to the stack file.
        :return: Parsed configuration.
        """
        with open(stack_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> StackConfig:
        """
        Parses a stack file from a string.

        :param content: YAML content of the stack file.
        :return: Parsed configuration.
        :raises StackConfigError: If the content is not a valid stack.
        """
        try:
            content = EnvironmentInterpolator.interpolate(content, self.context)
        except KeyError as e:
            raise StackConfigError(e.args[0]) from e

        if not content.strip():
            content = ""
        try:
            data = yaml.safe_load(content)
        except (yaml.YAMLError, ValueError) as e:
            raise StackConfigError(f"Invalid YAML: {e}") from e
        if not data:
            data = {}
        if not isinstance(data, dict):
            raise StackConfigError("Stack file must be a mapping")

        services = {}
        for name, spec in _section(data, 'services').items():
            instance = self._parse_service(str(name), spec)
            if instance is not None:
                services[instance.name] = instance

        catalog = parse_descriptors(_section(data, 'catalog'))

        try:
            settings = ValidationSettings(**_section(data, 'settings'))
        except (ValidationError, TypeError) as e:
            raise StackConfigError(f"Invalid settings: {e}") from e

        logger.debug("Parsed stack: %d enabled services, %d catalog entries", len(services), len(catalog))
        return StackConfig(services=services, settings=settings, catalog=catalog)

    def _parse_service(self, name: str, spec: Any) -> Optional[ServiceInstance]:
        """
        Parses a single service entry.

        :param name: The name of the service.
        :param spec: The service entry from the stack file.
        :return: A ServiceInstance, or None if the service is disabled.
        """
        if spec is None:
            spec = {}
        if not isinstance(spec, dict):
            raise StackConfigError(f"Service '{name}' must be a mapping")

        fields = _rename(spec, SERVICE_ALIASES)
        enable = fields.pop('enable', True)
        if not isinstance(enable, bool):
            raise StackConfigError(f"Service '{name}' enable must be true or false, got {enable!r}")
        if not enable:
            logger.debug("Skipping disabled service '%s'", name)
            return None

        if isinstance(fields.get('database'), dict):
            fields['database'] = _rename(fields['database'], DATABASE_ALIASES)
        if isinstance(fields.get('ssl'), dict):
            fields['ssl'] = _rename(fields['ssl'], SSL_ALIASES)

        fields['name'] = name
        try:
            return ServiceInstance(**fields)
        except ValidationError as e:
            raise StackConfigError(f"Invalid service '{name}': {e}") from e


def _section(data: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise StackConfigError(f"'{key}' must be a mapping")
    return value


def _rename(spec: Mapping[str, Any], aliases: Mapping[str, str]) -> Dict[str, Any]:
    return {aliases.get(str(k), str(k)): v for k, v in spec.items()}
