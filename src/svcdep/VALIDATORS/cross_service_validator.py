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
Field-level checks across all enabled service instances: port range and
uniqueness, data directory uniqueness, domain format, database credentials
and SSL consistency, plus advisory warnings for common misconfigurations.
"""
import logging
import posixpath
import re
from typing import Callable, Dict, List, Optional, Sequence

from ..MODELS.diagnostics import IssueCode, ValidationIssue
from ..MODELS.service_instance import PASSWORD_DATABASES, ServiceInstance, ServiceMode
from ..MODELS.stack_config import ValidationSettings

logger = logging.getLogger(__name__)

MIN_PORT = 1024
MAX_PORT = 65535
PRIVILEGED_EXCEPTION_PORTS = (80, 443)

DOMAIN_PATTERN = re.compile(r"[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# TLDs that never resolve publicly.
LOCAL_TLDS = frozenset({
    "local", "localhost", "test", "example", "invalid", "internal", "lan", "home", "localdomain",
})
DEFAULT_DOMAINS = ("example.com", "example.org", "example.net")
LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


class CrossServiceValidator:
    """
    Validates enabled service instances against each other.

    Independent of the dependency graph. Every rule runs over the full set;
    one issue is produced per violated rule per service, or per pair for the
    uniqueness rules.
    """

    def __init__(self, settings: Optional[ValidationSettings] = None):
        """
        :param settings: Validator settings, e.g. privileged port exceptions.
        """
        self.settings = settings or ValidationSettings()

    def validate(self, instances: Sequence[ServiceInstance]) -> List[ValidationIssue]:
        """
        Runs every check over the enabled instances.

        :param instances: The enabled service instances, in a stable order.
        :return: Fatal issues and warnings, grouped by rule.
        """
        issues: List[ValidationIssue] = []
        issues.extend(self.check_port_range(instances))
        issues.extend(self.check_unique(
            instances, lambda i: i.port, IssueCode.PORT_COLLISION,
            "Port {value} is already used by service '{first}', cannot assign to '{second}'",
        ))
        issues.extend(self.check_unique(
            instances, lambda i: _normalize_path(i.data_dir), IssueCode.DATA_DIR_COLLISION,
            "Data directory '{value}' is already used by service '{first}', cannot assign to '{second}'",
        ))
        for check in (
            self.check_paths,
            self.check_domain,
            self.check_database,
            self.check_ssl,
            self.warn_dev_mode,
            self.warn_default_domain,
            self.warn_database_link,
            self.warn_ssl_in_prod,
        ):
            for instance in instances:
                issues.extend(check(instance))

        logger.debug("Validated %d services: %d issues", len(instances), len(issues))
        return issues

    def check_port_range(self, instances: Sequence[ServiceInstance]) -> List[ValidationIssue]:
        issues = []
        allowed = set(self.settings.allow_privileged_ports)
        for instance in instances:
            if MIN_PORT <= instance.port <= MAX_PORT:
                continue
            if instance.name in allowed and instance.port in PRIVILEGED_EXCEPTION_PORTS:
                continue
            issues.append(ValidationIssue.fatal(
                IssueCode.PORT_OUT_OF_RANGE, instance.name,
                f"Service '{instance.name}' port {instance.port} must be between "
                f"{MIN_PORT}-{MAX_PORT} (non-privileged range)",
            ))
        return issues

    @staticmethod
    def check_unique(
        instances: Sequence[ServiceInstance],
        key: Callable[[ServiceInstance], object],
        code: IssueCode,
        template: str,
    ) -> List[ValidationIssue]:
        """
        Reports every pair of distinct services sharing the same key value.
        """
        seen: Dict[object, List[str]] = {}
        issues = []
        for instance in instances:
            value = key(instance)
            for first in seen.get(value, []):
                if first == instance.name:
                    continue
                issues.append(ValidationIssue.fatal(
                    code, instance.name,
                    template.format(value=value, first=first, second=instance.name),
                ))
            seen.setdefault(value, []).append(instance.name)
        return issues

    @staticmethod
    def check_paths(instance: ServiceInstance) -> List[ValidationIssue]:
        paths = [("dataDir", instance.data_dir)]
        if instance.ssl:
            paths.append(("certificate", instance.ssl.certificate))
            paths.append(("certificateKey", instance.ssl.certificate_key))
        if instance.database:
            paths.append(("passwordFile", instance.database.password_file))

        issues = []
        for label, path in paths:
            if path is None or path.startswith("/"):
                continue
            issues.append(ValidationIssue.fatal(
                IssueCode.INVALID_PATH, instance.name,
                f"Service '{instance.name}' {label} path '{path}' must be absolute",
            ))
        return issues

    @staticmethod
    def check_domain(instance: ServiceInstance) -> List[ValidationIssue]:
        if instance.domain is None or DOMAIN_PATTERN.fullmatch(instance.domain):
            return []
        return [ValidationIssue.fatal(
            IssueCode.INVALID_DOMAIN_FORMAT, instance.name,
            f"Service '{instance.name}' domain '{instance.domain}' is not a valid domain name format",
        )]

    @staticmethod
    def check_database(instance: ServiceInstance) -> List[ValidationIssue]:
        db = instance.database
        if db is None or db.kind not in PASSWORD_DATABASES or db.password_file is not None:
            return []
        return [ValidationIssue.fatal(
            IssueCode.MISSING_DATABASE_CREDENTIAL, instance.name,
            f"Service '{instance.name}' database type '{db.kind.value}' requires passwordFile to be set",
        )]

    @staticmethod
    def check_ssl(instance: ServiceInstance) -> List[ValidationIssue]:
        ssl = instance.ssl
        if ssl is None or not ssl.enabled or ssl.acme_host is not None:
            return []
        if ssl.certificate is not None and ssl.certificate_key is not None:
            return []
        return [ValidationIssue.fatal(
            IssueCode.INCONSISTENT_SSL_CONFIG, instance.name,
            f"Service '{instance.name}' SSL enabled without ACME requires both certificate and certificateKey paths",
        )]

    @staticmethod
    def warn_dev_mode(instance: ServiceInstance) -> List[ValidationIssue]:
        if instance.mode != ServiceMode.DEV or not _looks_like_production(instance.domain):
            return []
        return [ValidationIssue.warning(
            IssueCode.DEV_MODE_WITH_PROD_LIKE_DOMAIN, instance.name,
            f"Service '{instance.name}' is in dev mode but domain '{instance.domain}' looks like production",
        )]

    @staticmethod
    def warn_default_domain(instance: ServiceInstance) -> List[ValidationIssue]:
        domain = (instance.domain or "").lower()
        if not any(domain == d or domain.endswith("." + d) for d in DEFAULT_DOMAINS):
            return []
        return [ValidationIssue.warning(
            IssueCode.DEFAULT_DOMAIN_UNCHANGED, instance.name,
            f"Service '{instance.name}' is using default domain '{instance.domain}', should be changed for production",
        )]

    @staticmethod
    def warn_database_link(instance: ServiceInstance) -> List[ValidationIssue]:
        db = instance.database
        if db is None or db.kind not in PASSWORD_DATABASES or db.require_ssl:
            return []
        # Unix sockets stay on this host.
        if db.host in LOCAL_HOSTS or db.host.startswith("/"):
            return []
        return [ValidationIssue.warning(
            IssueCode.UNENCRYPTED_DATABASE_LINK, instance.name,
            f"Service '{instance.name}' database connection to '{db.host}' should use encryption",
        )]

    @staticmethod
    def warn_ssl_in_prod(instance: ServiceInstance) -> List[ValidationIssue]:
        if instance.mode != ServiceMode.PROD or instance.ssl is None or instance.ssl.enabled:
            return []
        return [ValidationIssue.warning(
            IssueCode.SSL_DISABLED_IN_PROD, instance.name,
            f"Service '{instance.name}' has SSL disabled in production mode - security risk",
        )]


def _normalize_path(path: str) -> str:
    if not path:
        return path
    # normpath keeps a leading "//".
    return posixpath.normpath("/" + path.lstrip("/") if path.startswith("/") else path)


def _looks_like_production(domain: Optional[str]) -> bool:
    if not domain or not DOMAIN_PATTERN.fullmatch(domain):
        return False
    return domain.rsplit(".", 1)[-1].lower() not in LOCAL_TLDS
