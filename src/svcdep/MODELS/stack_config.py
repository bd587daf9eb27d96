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
Models for a complete stack configuration.
"""
from typing import List, Dict
from pydantic import BaseModel, ConfigDict, Field, model_validator
from .service_descriptor import ServiceDescriptor
from .service_instance import ServiceInstance


class StackConfigError(ValueError):
    """Raised when a stack or catalog file cannot be turned into a configuration."""


class ValidationSettings(BaseModel):
    """
    Knobs for the cross-service validator.
    """
    model_config = ConfigDict(frozen=True)

    # Services allowed to bind 80/443. Every other port below 1024 stays fatal.
    allow_privileged_ports: List[str] = []


class StackConfig(BaseModel):
    """
    The set of enabled services for one configuration build.
    Equivalent to a parsed stack file.

    ``services`` keeps the order of the stack file; ``catalog`` holds extra
    descriptors that extend or override the built-in catalog.
    """
    model_config = ConfigDict(frozen=True)

    services: Dict[str, ServiceInstance] = {}
    settings: ValidationSettings = Field(default_factory=ValidationSettings)
    catalog: Dict[str, ServiceDescriptor] = {}

    @model_validator(mode="after")
    def _names_match_keys(self):
        for key, instance in self.services.items():
            if key != instance.name:
                raise ValueError(f"Service key '{key}' does not match instance name '{instance.name}'")
        return self

    def enabled_names(self) -> List[str]:
        return list(self.services.keys())
