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
Unit tests for capability resolution, conflicts and auto-enabling.
"""
import pytest

from svcdep.MODELS.diagnostics import IssueCode, Severity
from svcdep.REGISTRY.default_catalog import default_catalog
from svcdep.REGISTRY.service_catalog import ServiceCatalog, UnknownServiceError
from svcdep.RUNNERS.capability_resolver import CapabilityResolver


def codes(issues, severity=None):
    return [i.code for i in issues if severity is None or i.severity == severity]


class TestFindProviders:
    """Tests for provider lookup."""

    def test_enabled_provider(self):
        resolver = CapabilityResolver(default_catalog())
        assert resolver.find_providers("database.postgres", ["gitea", "postgres"]) == ["postgres"]

    def test_disabled_provider_ignored(self):
        resolver = CapabilityResolver(default_catalog())
        assert resolver.find_providers("reverse_proxy", ["gitea"]) == []

    def test_several_providers(self):
        """Test that every enabled provider is returned in catalog order."""
        catalog = ServiceCatalog.from_dict({
            "p1": {"provides": ["cap"]},
            "p2": {"provides": ["cap"]},
            "d": {"requires": ["cap"]},
        })
        resolver = CapabilityResolver(catalog)
        assert resolver.find_providers("cap", ["d", "p2", "p1"]) == ["p1", "p2"]
        assert resolver.resolve("d", ["d", "p2", "p1"]).requires == ["p1", "p2"]
        assert codes(resolver.check(["d", "p1", "p2"]), Severity.FATAL) == []


class TestResolve:
    """Tests for resolving a single service."""

    def test_gitea(self):
        """Test hard, soft and optional links of a web service."""
        resolver = CapabilityResolver(default_catalog())
        dep = resolver.resolve("gitea", ["gitea", "postgres", "traefik"])
        assert dep.requires == ["postgres"]
        assert dep.after_services == ["postgres"]
        assert dep.optional_providers == ["traefik"]
        assert dep.conflicts == []
        assert dep.provides == ["git.server", "web.service"]

    def test_after_dropped_when_not_enabled(self):
        """Test that soft orderings on disabled services disappear."""
        resolver = CapabilityResolver(default_catalog())
        dep = resolver.resolve("mastodon", ["mastodon", "postgres"])
        assert dep.requires == ["postgres"]
        assert dep.after_services == ["postgres"]

    def test_conflicts_unfiltered(self):
        """Test that conflicts are passed through whether enabled or not."""
        resolver = CapabilityResolver(default_catalog())
        assert resolver.resolve("traefik", ["traefik"]).conflicts == ["haproxy", "nginx"]

    def test_self_provision(self):
        """Test that a service providing its own requirement gets no edge."""
        catalog = ServiceCatalog.from_dict({"a": {"provides": ["x"], "requires": ["x"]}})
        resolver = CapabilityResolver(catalog)
        assert resolver.resolve("a", ["a"]).requires == []
        assert resolver.check(["a"]) == []

    def test_unknown_service(self):
        """Test that an unregistered service resolves to nothing."""
        resolver = CapabilityResolver(default_catalog())
        dep = resolver.resolve("custom", ["custom", "postgres"])
        assert dep.requires == []
        assert dep.provides == []

    def test_deterministic(self):
        """Test that identical input gives identical output."""
        resolver = CapabilityResolver(default_catalog())
        enabled = ["mastodon", "redis", "postgres", "nginx"]
        assert resolver.resolve_all(enabled) == resolver.resolve_all(enabled)
        assert list(resolver.resolve_all(enabled)) == ["postgres", "redis", "mastodon", "nginx"]


class TestCheck:
    """Tests for resolution issues."""

    def test_missing_required_capability(self):
        resolver = CapabilityResolver(default_catalog())
        issues = resolver.check(["gitea"])
        fatal = [i for i in issues if i.severity == Severity.FATAL]
        assert len(fatal) == 1
        assert fatal[0].code == IssueCode.MISSING_REQUIRED_CAPABILITY
        assert fatal[0].service == "gitea"
        assert "database.postgres" in fatal[0].message
        assert "postgres" in fatal[0].message

    def test_every_missing_capability_reported(self):
        resolver = CapabilityResolver(default_catalog())
        issues = resolver.check(["mastodon", "gitea"])
        assert codes(issues, Severity.FATAL) == [IssueCode.MISSING_REQUIRED_CAPABILITY] * 3

    def test_mutual_conflict_reported_once(self):
        resolver = CapabilityResolver(default_catalog())
        issues = [i for i in resolver.check(["traefik", "haproxy"]) if i.code == IssueCode.CONFLICTING_SERVICES]
        assert len(issues) == 1
        assert issues[0].severity == Severity.FATAL
        assert "traefik" in issues[0].message
        assert "haproxy" in issues[0].message
        assert "declared by both" in issues[0].message

    def test_one_sided_conflict(self):
        catalog = ServiceCatalog.from_dict({"a": {"conflicts": ["b"]}, "b": {}})
        issues = CapabilityResolver(catalog).check(["b", "a"])
        assert len(issues) == 1
        assert issues[0].code == IssueCode.CONFLICTING_SERVICES
        assert issues[0].service == "a"
        assert "declared by 'a'" in issues[0].message

    def test_conflict_with_disabled_service_ignored(self):
        resolver = CapabilityResolver(default_catalog())
        assert codes(resolver.check(["traefik"])) == []

    def test_missing_optional_is_warning(self):
        """Test that a missing optional capability lists possible providers."""
        resolver = CapabilityResolver(default_catalog())
        issues = resolver.check(["gitea", "postgres"])
        assert codes(issues, Severity.FATAL) == []
        warnings = [i for i in issues if i.code == IssueCode.MISSING_OPTIONAL_CAPABILITY]
        assert len(warnings) == 1
        assert warnings[0].service == "gitea"
        assert "traefik, haproxy, nginx" in warnings[0].message

    def test_optional_without_known_provider(self):
        catalog = ServiceCatalog.from_dict({"a": {"optional": ["unheard.of"]}})
        issues = CapabilityResolver(catalog).check(["a"])
        assert codes(issues) == [IssueCode.MISSING_OPTIONAL_CAPABILITY]
        assert "no known service" in issues[0].message

    def test_unknown_service_warning(self):
        resolver = CapabilityResolver(default_catalog())
        issues = resolver.check(["postgres", "custom"])
        assert codes(issues) == [IssueCode.UNKNOWN_SERVICE]
        assert issues[0].severity == Severity.WARNING


class TestAutoEnable:
    """Tests for expanding a selection with its providers."""

    def test_transitive_providers(self):
        resolver = CapabilityResolver(default_catalog())
        assert resolver.auto_enable(["mastodon"]) == ["postgres", "redis", "mastodon"]

    def test_nothing_to_add(self):
        resolver = CapabilityResolver(default_catalog())
        assert resolver.auto_enable(["traefik", "redis"]) == ["redis", "traefik"]

    def test_chain(self):
        catalog = ServiceCatalog.from_dict({
            "db": {"provides": ["db"]},
            "api": {"provides": ["api"], "requires": ["db"]},
            "web": {"requires": ["api"]},
        })
        assert CapabilityResolver(catalog).auto_enable(["web"]) == ["db", "api", "web"]

    def test_skips_conflicting_provider(self):
        catalog = ServiceCatalog.from_dict({
            "p1": {"provides": ["proxy"], "conflicts": ["blocker"]},
            "p2": {"provides": ["proxy"]},
            "blocker": {},
            "app": {"requires": ["proxy"]},
        })
        assert CapabilityResolver(catalog).auto_enable(["blocker", "app"]) == ["p2", "blocker", "app"]

    def test_unsatisfiable_left_alone(self):
        catalog = ServiceCatalog.from_dict({"app": {"requires": ["nothing"]}})
        assert CapabilityResolver(catalog).auto_enable(["app"]) == ["app"]

    def test_unknown_requested(self):
        resolver = CapabilityResolver(default_catalog())
        with pytest.raises(UnknownServiceError):
            resolver.auto_enable(["does-not-exist"])
