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
Maps the capabilities a service requires to the enabled services providing them.
"""
import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from ..MODELS.diagnostics import IssueCode, ResolvedDependency, ValidationIssue
from ..REGISTRY.service_catalog import ServiceCatalog

logger = logging.getLogger(__name__)


class CapabilityResolver:
    """
    Resolves capability requirements against the set of enabled services.

    Holds no state besides the catalog; every call works on the enabled set
    it is given.
    """

    def __init__(self, catalog: ServiceCatalog):
        """
        :param catalog: Catalog of known services.
        """
        self.catalog = catalog

    def find_providers(self, capability: str, enabled: Iterable[str]) -> List[str]:
        """
        Returns the enabled services providing a capability, in catalog order.

        :param capability: Capability tag to look up.
        :param enabled: Names of the enabled services.
        :return: Provider names, possibly empty.
        """
        enabled_set = set(enabled)
        return [name for name in self.catalog.candidates_for(capability) if name in enabled_set]

    def resolve(self, service: str, enabled: Sequence[str]) -> ResolvedDependency:
        """
        Resolves the concrete dependencies of one service.

        A capability the service provides itself is satisfied without an edge.
        Soft orderings on services that are not enabled are dropped; conflicts
        are passed through unfiltered.

        :param service: The service to resolve.
        :param enabled: Names of the enabled services.
        :return: The resolved dependency record.
        """
        descriptor = self.catalog.descriptor_or_empty(service)
        enabled_set = set(enabled)

        requires = []
        for capability in descriptor.requires:
            if capability in descriptor.provides:
                continue
            requires.extend(self.find_providers(capability, enabled_set))
        requires = self.catalog.order(requires)

        optional = []
        for capability in descriptor.optional:
            optional.extend(
                p for p in self.find_providers(capability, enabled_set)
                if p != service and p not in requires
            )

        after = [name for name in descriptor.after if name in enabled_set and name != service]

        return ResolvedDependency(
            service=service,
            requires=requires,
            after_services=self.catalog.order(after),
            optional_providers=self.catalog.order(optional),
            conflicts=list(descriptor.conflicts),
            provides=list(descriptor.provides),
        )

    def resolve_all(self, enabled: Sequence[str]) -> Dict[str, ResolvedDependency]:
        """Resolves every enabled service, keyed by name in catalog order."""
        return {name: self.resolve(name, enabled) for name in self.catalog.order(enabled)}

    def check(self, enabled: Sequence[str]) -> List[ValidationIssue]:
        """
        Reports unknown services, unmet requirements, conflicts and missing
        optional capabilities for the enabled set. Every problem is reported,
        nothing short-circuits.

        :param enabled: Names of the enabled services.
        :return: Issues in catalog order of the offending service.
        """
        ordered = self.catalog.order(enabled)
        enabled_set = set(ordered)
        issues: List[ValidationIssue] = []

        for name in ordered:
            if name not in self.catalog:
                issues.append(ValidationIssue.warning(
                    IssueCode.UNKNOWN_SERVICE, name,
                    f"Service '{name}' is not in the catalog; no dependency information is available",
                ))

        for name in ordered:
            descriptor = self.catalog.descriptor_or_empty(name)
            for capability in descriptor.requires:
                if capability in descriptor.provides or self.find_providers(capability, enabled_set):
                    continue
                issues.append(ValidationIssue.fatal(
                    IssueCode.MISSING_REQUIRED_CAPABILITY, name,
                    f"Service '{name}' requires '{capability}' but no enabled service provides it"
                    + self._hint(capability, name),
                ))

        issues.extend(self._conflicts(ordered, enabled_set))

        for name in ordered:
            descriptor = self.catalog.descriptor_or_empty(name)
            for capability in descriptor.optional:
                if capability in descriptor.provides or self.find_providers(capability, enabled_set):
                    continue
                candidates = [c for c in self.catalog.candidates_for(capability) if c != name]
                if candidates:
                    message = f"Service '{name}' could benefit from '{capability}': {', '.join(candidates)}"
                else:
                    message = f"Service '{name}' could benefit from '{capability}' but no known service provides it"
                issues.append(ValidationIssue.warning(IssueCode.MISSING_OPTIONAL_CAPABILITY, name, message))

        logger.debug("Capability check over %d services produced %d issues", len(ordered), len(issues))
        return issues

    def _conflicts(self, ordered: List[str], enabled_set: set) -> List[ValidationIssue]:
        """
        One issue per enabled pair, whether one side or both declared the conflict.
        """
        declared: Dict[Tuple[str, str], List[str]] = {}
        for name in ordered:
            for other in self.catalog.descriptor_or_empty(name).conflicts:
                if other == name or other not in enabled_set:
                    continue
                first, second = self.catalog.order([name, other])
                declared.setdefault((first, second), []).append(name)

        issues = []
        for (first, second), declarers in declared.items():
            if len(declarers) > 1:
                origin = "declared by both"
            else:
                origin = f"declared by '{declarers[0]}'"
            issues.append(ValidationIssue.fatal(
                IssueCode.CONFLICTING_SERVICES, first,
                f"Services '{first}' and '{second}' conflict and cannot both be enabled ({origin})",
            ))
        return issues

    def _hint(self, capability: str, service: str) -> str:
        candidates = [c for c in self.catalog.candidates_for(capability) if c != service]
        if not candidates:
            return ""
        return f" (enable one of: {', '.join(candidates)})"

    def auto_enable(self, requested: Sequence[str]) -> List[str]:
        """
        Expands a selection with the providers its hard requirements need.

        For every unmet capability the first catalog provider that does not
        conflict with the current selection is added, transitively. A
        capability nothing can satisfy is left for :meth:`check` to report.

        :param requested: Services the user asked for.
        :return: The expanded selection in catalog order.
        :raises UnknownServiceError: If a requested service is not in the catalog.
        """
        selected = list(dict.fromkeys(requested))
        for name in selected:
            self.catalog.get(name)

        pending = list(selected)
        while pending:
            name = pending.pop(0)
            descriptor = self.catalog.get(name)
            for capability in descriptor.requires:
                if self.find_providers(capability, selected):
                    continue
                for candidate in self.catalog.candidates_for(capability):
                    if not self._conflicts_with(candidate, selected):
                        logger.debug("Enabling '%s' to provide '%s' for '%s'", candidate, capability, name)
                        selected.append(candidate)
                        pending.append(candidate)
                        break
                else:
                    logger.debug("No usable provider of '%s' for '%s'", capability, name)

        return self.catalog.order(selected)

    def _conflicts_with(self, candidate: str, selected: List[str]) -> bool:
        declared = self.catalog.get(candidate).conflicts
        for name in selected:
            if name in declared or candidate in self.catalog.descriptor_or_empty(name).conflicts:
                return True
        return False
