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
Utilities for substituting environment variables into stack files.
"""
import re
from typing import Mapping


class EnvironmentInterpolator:
    """
    Substitutes ``${VAR}`` and ``${VAR:-default}`` placeholders.
    ``$$`` produces a literal dollar sign.
    """
    PATTERN = re.compile(r"\$\$|\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

    @classmethod
    def interpolate(cls, template: str, context: Mapping[str, str]) -> str:
        """
        Interpolates environment variables in the template string using the provided context.

        :param template: Text containing placeholders.
        :param context: Variable values, usually ``os.environ``.
        :return: The interpolated text.
        :raises KeyError: If a variable without default is unset.
        """
        def replace(match):
            if match.group(0) == "$$":
                return "$"
            name, default = match.group(1), match.group(2)
            value = context.get(name)
            if value:
                return value
            if default is not None:
                return default
            if value is not None:
                return value
            raise KeyError(f"Variable {name} not found in context")

        return cls.PATTERN.sub(replace, template)
