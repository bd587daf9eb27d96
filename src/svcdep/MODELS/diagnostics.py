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
Models for resolution results: dependency edges, resolved dependencies,
validation issues and the final report.
"""
from typing import List, Dict, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    """
    Whether an issue blocks activation.
    """
    FATAL = "fatal"
    WARNING = "warning"


class IssueCode(str, Enum):
    """
    Kinds of problems the engine can report.
    """
    # Fatal
    MISSING_REQUIRED_CAPABILITY = "MissingRequiredCapability"
    CONFLICTING_SERVICES = "ConflictingServices"
    CYCLIC_DEPENDENCY = "CyclicDependency"
    PORT_OUT_OF_RANGE = "PortOutOfRange"
    PORT_COLLISION = "PortCollision"
    DATA_DIR_COLLISION = "DataDirCollision"
    INVALID_DOMAIN_FORMAT = "InvalidDomainFormat"
    MISSING_DATABASE_CREDENTIAL = "MissingDatabaseCredential"
    INCONSISTENT_SSL_CONFIG = "InconsistentSslConfig"
    INVALID_PATH = "InvalidPath"

    # Advisory
    DEV_MODE_WITH_PROD_LIKE_DOMAIN = "DevModeWithProdLikeDomain"
    DEFAULT_DOMAIN_UNCHANGED = "DefaultDomainUnchanged"
    UNENCRYPTED_DATABASE_LINK = "UnencryptedDatabaseLink"
    SSL_DISABLED_IN_PROD = "SslDisabledInProd"
    MISSING_OPTIONAL_CAPABILITY = "MissingOptionalCapability"
    UNKNOWN_SERVICE = "UnknownService"


class ValidationIssue(BaseModel):
    """
    A single problem attached to a service.
    """
    model_config = ConfigDict(frozen=True)

    severity: Severity
    code: IssueCode
    service: str
    message: str

    @classmethod
    def fatal(cls, code: IssueCode, service: str, message: str) -> "ValidationIssue":
        return cls(severity=Severity.FATAL, code=code, service=service, message=message)

    @classmethod
    def warning(cls, code: IssueCode, service: str, message: str) -> "ValidationIssue":
        return cls(severity=Severity.WARNING, code=code, service=service, message=message)


class EdgeKind(str, Enum):
    HARD = "hard"
    SOFT = "soft"


class DependencyEdge(BaseModel):
    """
    Directed edge from a service that must start first to the service waiting on it.
    """
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    kind: EdgeKind


class ResolvedDependency(BaseModel):
    """
    The concrete services a single enabled service depends on.

    ``requires`` are hard providers, ``after_services`` and
    ``optional_providers`` only influence ordering.
    """
    model_config = ConfigDict(frozen=True)

    service: str
    requires: List[str] = []
    after_services: List[str] = []
    optional_providers: List[str] = []
    conflicts: List[str] = []
    provides: List[str] = []


class SupervisorDirective(BaseModel):
    """
    Unit ordering handed to the process supervisor for one service.
    """
    model_config = ConfigDict(frozen=True)

    wants: List[str] = []
    after: List[str] = []
    conflicts: List[str] = []


class Report(BaseModel):
    """
    Outcome of one resolution run.

    ``startup_order`` is None whenever ``fatal`` is not empty.
    """
    model_config = ConfigDict(frozen=True)

    fatal: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    startup_order: Optional[List[str]] = None
    directives: Dict[str, SupervisorDirective] = {}

    @property
    def ok(self) -> bool:
        return not self.fatal

    def render_text(self) -> str:
        """
        Renders the report as the human readable message list shown on failure.

        :return: Multi-line text, empty when there is nothing to report.
        """
        lines = []
        if self.fatal:
            lines.append("Service configuration validation failed:")
            for issue in self.fatal:
                lines.append(f"  [{issue.code.value}] {issue.service}: {issue.message}")
        if self.warnings:
            lines.append("Warnings:")
            for issue in self.warnings:
                lines.append(f"  [{issue.code.value}] {issue.service}: {issue.message}")
        return "\n".join(lines)
