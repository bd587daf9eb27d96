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
Runs dependency resolution and cross-service validation for a whole stack.
"""
import logging
from typing import List, Optional

from ..MODELS.diagnostics import Report
from ..MODELS.stack_config import StackConfig
from ..REGISTRY.default_catalog import default_catalog
from ..REGISTRY.service_catalog import ServiceCatalog
from ..RUNNERS.dependency_resolver import DependencyResolver
from ..VALIDATORS.cross_service_validator import CrossServiceValidator
from .diagnostics_aggregator import DiagnosticsAggregator

logger = logging.getLogger(__name__)


class ResolutionEngine:
    """
    Resolves a stack configuration into a report.

    Each call to :meth:`resolve` builds everything from its input, so the
    engine can be shared between threads.
    """

    def __init__(self, catalog: Optional[ServiceCatalog] = None):
        """
        :param catalog: Catalog of known services, the built-in one by default.
        """
        self.catalog = catalog if catalog is not None else default_catalog()
        self.aggregator = DiagnosticsAggregator()

    def catalog_for(self, stack: StackConfig) -> ServiceCatalog:
        """Returns the catalog extended with the stack's own descriptors."""
        return self.catalog.extended(stack.catalog)

    def resolve(self, stack: StackConfig) -> Report:
        """
        Resolves startup order and validates the enabled services.

        :param stack: The enabled services and validator settings.
        :return: The report; ``startup_order`` is None if anything is fatal.
        """
        catalog = self.catalog_for(stack)
        enabled = stack.enabled_names()
        logger.info("Resolving %d enabled services", len(enabled))

        graph_result = DependencyResolver(catalog).resolve(enabled)

        instances = [stack.services[name] for name in catalog.order(enabled)]
        validation_issues = CrossServiceValidator(stack.settings).validate(instances)

        return self.aggregator.aggregate(graph_result, validation_issues)

    def auto_enable(self, requested: List[str], stack: Optional[StackConfig] = None) -> List[str]:
        """
        Returns the requested services plus the providers they need.

        :param requested: Service names to enable.
        :param stack: Optional stack whose catalog extensions apply.
        :return: Services to enable, in catalog order.
        """
        catalog = self.catalog_for(stack) if stack is not None else self.catalog
        return DependencyResolver(catalog).capabilities.auto_enable(requested)
