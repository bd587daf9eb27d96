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
Parsers for service catalog YAML files.
"""
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from ..MODELS.service_descriptor import ServiceDescriptor
from ..MODELS.stack_config import StackConfigError
from ..REGISTRY.service_catalog import ServiceCatalog


def parse_descriptors(raw: Mapping[Any, Any]) -> Dict[str, ServiceDescriptor]:
    """
    Turns a mapping of service name to descriptor fields into descriptors,
    keeping the mapping's order.

    :raises StackConfigError: If an entry is not a valid descriptor.
    """
    descriptors = {}
    for name, spec in raw.items():
        if spec is None:
            spec = {}
        if not isinstance(spec, dict):
            raise StackConfigError(f"Catalog entry '{name}' must be a mapping")
        try:
            descriptors[str(name)] = ServiceDescriptor(**{str(k): v for k, v in spec.items()})
        except ValidationError as e:
            raise StackConfigError(f"Invalid catalog entry '{name}': {e}") from e
    return descriptors


class CatalogParser:
    """
    Parser for catalog files: a mapping of service name to
    ``provides``/``requires``/``after``/``conflicts``/``optional`` lists.
    """
    def parse(self, catalog_path: str) -> ServiceCatalog:
        with open(catalog_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> ServiceCatalog:
        try:
            data = yaml.safe_load(content)
        except (yaml.YAMLError, ValueError) as e:
            raise StackConfigError(f"Invalid YAML: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise StackConfigError("Catalog file must be a mapping")
        return ServiceCatalog(parse_descriptors(data))
