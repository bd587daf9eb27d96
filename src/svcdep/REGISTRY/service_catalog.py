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
Read-only registry of known services and the capabilities they declare.
"""
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping

from ..MODELS.service_descriptor import ServiceDescriptor

logger = logging.getLogger(__name__)


class UnknownServiceError(KeyError):
    """Raised when a service name is not registered in the catalog."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Service '{self.name}' is not in the catalog"


class ServiceCatalog:
    """
    Maps service names to their descriptors.

    Registration order is significant: it is the tie-break order used when
    several services could be placed next, so identical input always yields
    identical output. A capability index is built once at construction.
    """

    def __init__(self, descriptors: Mapping[str, ServiceDescriptor]):
        """
        Builds the catalog.

        :param descriptors: Service name to descriptor, in registration order.
        """
        self._descriptors: Dict[str, ServiceDescriptor] = dict(descriptors)
        self._positions: Dict[str, int] = {name: i for i, name in enumerate(self._descriptors)}
        self._providers: Dict[str, List[str]] = {}
        for name, descriptor in self._descriptors.items():
            for capability in descriptor.provides:
                self._providers.setdefault(capability, []).append(name)
        logger.debug(
            "Catalog built with %d services and %d capabilities",
            len(self._descriptors), len(self._providers),
        )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Mapping[str, Any]]) -> "ServiceCatalog":
        """
        Builds a catalog from plain dictionaries, e.g. loaded from YAML.

        :param raw: Service name to a mapping of descriptor fields.
        :return: A new catalog.
        """
        return cls({name: ServiceDescriptor(**(spec or {})) for name, spec in raw.items()})

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def names(self) -> List[str]:
        return list(self._descriptors)

    def get(self, name: str) -> ServiceDescriptor:
        """
        Returns the descriptor of a service.

        :raises UnknownServiceError: If the service is not registered.
        """
        try:
            return self._descriptors[name]
        except KeyError:
            raise UnknownServiceError(name) from None

    def descriptor_or_empty(self, name: str) -> ServiceDescriptor:
        """Returns the descriptor, or an empty one for unregistered services."""
        return self._descriptors.get(name) or ServiceDescriptor()

    def candidates_for(self, capability: str) -> List[str]:
        """
        Returns every registered service providing a capability, enabled or not.
        """
        return list(self._providers.get(capability, []))

    def order(self, names: Iterable[str]) -> List[str]:
        """
        Sorts service names into registration order.

        Unregistered names go last, keeping the order they were given in.

        :param names: Service names, duplicates are dropped.
        :return: The names in catalog order.
        """
        fallback = len(self._positions)
        keyed = [
            ((self._positions.get(name, fallback), i), name)
            for i, name in enumerate(dict.fromkeys(names))
        ]
        return [name for _, name in sorted(keyed)]

    def extended(self, descriptors: Mapping[str, ServiceDescriptor]) -> "ServiceCatalog":
        """
        Returns a new catalog with extra or replacement descriptors.

        Replaced services keep their registration position, new ones are appended.
        """
        if not descriptors:
            return self
        merged = dict(self._descriptors)
        merged.update(descriptors)
        return ServiceCatalog(merged)
