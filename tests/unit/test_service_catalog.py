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
Unit tests for the service catalog and descriptors.
"""
import pytest
from pydantic import ValidationError

from svcdep.MODELS.service_descriptor import ServiceDescriptor
from svcdep.REGISTRY.default_catalog import default_catalog
from svcdep.REGISTRY.service_catalog import ServiceCatalog, UnknownServiceError


class TestServiceDescriptor:
    """Tests for ServiceDescriptor."""

    def test_duplicates_removed_in_order(self):
        """Test that duplicate entries collapse, keeping first-seen order."""
        descriptor = ServiceDescriptor(provides=["b", "a", "b"])
        assert descriptor.provides == ("b", "a")

    def test_defaults_empty(self):
        """Test that every field defaults to empty."""
        descriptor = ServiceDescriptor()
        assert descriptor.requires == ()
        assert descriptor.conflicts == ()

    def test_immutable(self):
        """Test that descriptors cannot be modified."""
        descriptor = ServiceDescriptor(provides=["cache"])
        with pytest.raises(ValidationError):
            descriptor.provides = ("other",)


class TestServiceCatalog:
    """Tests for ServiceCatalog."""

    def test_registration_order(self):
        """Test that names come back in registration order."""
        catalog = ServiceCatalog.from_dict({"c": {}, "a": {}, "b": {}})
        assert catalog.names() == ["c", "a", "b"]
        assert list(catalog) == ["c", "a", "b"]
        assert len(catalog) == 3

    def test_order_puts_unknown_last(self):
        """Test sorting names into catalog order with unknown names last."""
        catalog = ServiceCatalog.from_dict({"a": {}, "b": {}, "c": {}})
        assert catalog.order(["y", "c", "x", "a", "c"]) == ["a", "c", "y", "x"]

    def test_get_unknown(self):
        """Test that looking up an unregistered service raises."""
        catalog = ServiceCatalog.from_dict({"a": {}})
        with pytest.raises(UnknownServiceError) as exc:
            catalog.get("missing")
        assert isinstance(exc.value, KeyError)
        assert "missing" in str(exc.value)

    def test_descriptor_or_empty(self):
        """Test that unknown services get an empty descriptor."""
        catalog = ServiceCatalog.from_dict({"a": {"provides": ["x"]}})
        assert catalog.descriptor_or_empty("a").provides == ("x",)
        assert catalog.descriptor_or_empty("zzz") == ServiceDescriptor()

    def test_candidates_for(self):
        """Test the capability index."""
        catalog = default_catalog()
        assert catalog.candidates_for("reverse_proxy") == ["traefik", "haproxy", "nginx"]
        assert catalog.candidates_for("database.postgres") == ["postgres"]
        assert catalog.candidates_for("nothing") == []

    def test_extended_keeps_original(self):
        """Test that extending returns a new catalog and leaves the original alone."""
        catalog = ServiceCatalog.from_dict({"a": {}, "b": {}})
        extended = catalog.extended({
            "a": ServiceDescriptor(provides=["x"]),
            "c": ServiceDescriptor(provides=["x"]),
        })
        assert extended.names() == ["a", "b", "c"]
        assert extended.candidates_for("x") == ["a", "c"]
        assert catalog.candidates_for("x") == []
        assert "c" not in catalog

    def test_extended_empty_is_same(self):
        """Test that extending with nothing returns the same catalog."""
        catalog = default_catalog()
        assert catalog.extended({}) is catalog


class TestDefaultCatalog:
    """Tests for the built-in catalog."""

    def test_known_services(self):
        """Test that the built-in services are registered."""
        catalog = default_catalog()
        for name in ("postgres", "redis", "gitea", "mastodon", "traefik", "home-assistant"):
            assert name in catalog

    def test_mastodon_requirements(self):
        """Test a descriptor with several requirements."""
        mastodon = default_catalog().get("mastodon")
        assert mastodon.requires == ("database.postgres", "database.redis")
        assert mastodon.after == ("postgres", "redis")
        assert "reverse_proxy" in mastodon.optional
