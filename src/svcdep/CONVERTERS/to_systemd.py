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
Converters for generating systemd ordering drop-ins from a resolution report.
"""
import logging
import os
from typing import Dict, List

from jinja2 import Template

from ..MODELS.diagnostics import Report

logger = logging.getLogger(__name__)

DROPIN_NAME = "10-svcdep-ordering.conf"

DROPIN_TEMPLATE = """# Generated by svcdep; startup position {{ position }} of {{ total }}
[Unit]
After=network.target{% for dep in after %} {{ dep }}.service{% endfor %}
{% if wants %}Wants={% for dep in wants %}{{ dep }}.service{% if not loop.last %} {% endif %}{% endfor %}
{% endif %}{% if conflicts %}Conflicts={% for dep in conflicts %}{{ dep }}.service{% if not loop.last %} {% endif %}{% endfor %}
{% endif %}"""


class ReportNotActivatableError(RuntimeError):
    """Raised when converting a report that contains fatal issues."""


class SystemdConverter:
    """
    Writes one ``<service>.service.d/`` drop-in per service holding the
    ``Wants=``, ``After=`` and ``Conflicts=`` lines from a report.
    """

    def __init__(self, report: Report):
        """
        Initializes the systemd converter.

        :param report: A report without fatal issues.
        :raises ReportNotActivatableError: If the report has fatal issues.
        """
        if not report.ok or report.startup_order is None:
            raise ReportNotActivatableError(
                f"Refusing to generate units for a configuration with {len(report.fatal)} fatal issues"
            )
        self.report = report
        self.template = Template(DROPIN_TEMPLATE)

    def render(self) -> Dict[str, str]:
        """
        Renders the drop-ins in startup order.

        :return: Service name to drop-in content.
        """
        order: List[str] = self.report.startup_order or []
        rendered = {}
        for position, name in enumerate(order, start=1):
            directive = self.report.directives.get(name)
            rendered[name] = self.template.render(
                position=position,
                total=len(order),
                wants=directive.wants if directive else [],
                after=directive.after if directive else [],
                conflicts=directive.conflicts if directive else [],
            )
        return rendered

    def convert(self, output_dir: str = "systemd") -> str:
        """
        Generates the drop-in files.

        :param output_dir: The directory where drop-in directories will be created.
        :return: The path to the output directory.
        """
        for name, content in self.render().items():
            unit_dir = os.path.join(output_dir, f"{name}.service.d")
            os.makedirs(unit_dir, exist_ok=True)
            with open(os.path.join(unit_dir, DROPIN_NAME), "w") as f:
                f.write(content)

        logger.info("Systemd drop-ins generated in %s", output_dir)
        return output_dir
