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
Static descriptors declaring what a service provides, requires and conflicts with.
"""
from typing import Tuple
from pydantic import BaseModel, ConfigDict, field_validator


class ServiceDescriptor(BaseModel):
    """
    Capabilities and relationships declared by a known service.

    Capabilities are opaque string tags ("database.postgres", "reverse_proxy")
    compared by exact match. ``after`` and ``conflicts`` hold service names,
    the other fields hold capabilities. Entries keep their declaration order.
    """
    model_config = ConfigDict(frozen=True)

    provides: Tuple[str, ...] = ()
    requires: Tuple[str, ...] = ()
    after: Tuple[str, ...] = ()
    conflicts: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()

    @field_validator("provides", "requires", "after", "conflicts", "optional", mode="before")
    @classmethod
    def _dedupe(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            return value
        # dict.fromkeys keeps first-seen order
        return tuple(dict.fromkeys(value))
