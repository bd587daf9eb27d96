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
Built-in catalog of self-hosted services.
"""
from .service_catalog import ServiceCatalog

# Databases first so they win registration-order tie-breaks.
DEFAULT_SERVICES = {
    "postgres": {
        "provides": ["database.postgres"],
    },
    "redis": {
        "provides": ["database.redis", "cache"],
    },
    "gitea": {
        "provides": ["git.server", "web.service"],
        "requires": ["database.postgres"],
        "after": ["postgres"],
        "optional": ["reverse_proxy"],
    },
    "mastodon": {
        "provides": ["social.server", "web.service"],
        "requires": ["database.postgres", "database.redis"],
        "after": ["postgres", "redis"],
        "optional": ["reverse_proxy"],
    },
    "matrix-synapse": {
        "provides": ["chat.server", "web.service"],
        "requires": ["database.postgres"],
        "after": ["postgres"],
        "optional": ["reverse_proxy"],
    },
    "vaultwarden": {
        "provides": ["password.manager", "web.service"],
        "optional": ["database.postgres", "reverse_proxy"],
    },
    "traefik": {
        "provides": ["reverse_proxy", "load_balancer"],
        "conflicts": ["haproxy", "nginx"],
    },
    "haproxy": {
        "provides": ["reverse_proxy", "load_balancer"],
        "conflicts": ["traefik", "nginx"],
    },
    "nginx": {
        "provides": ["reverse_proxy", "web.server"],
        "conflicts": ["traefik", "haproxy"],
    },
    "prometheus": {
        "provides": ["monitoring.metrics"],
    },
    "grafana": {
        "provides": ["monitoring.visualization"],
        "optional": ["monitoring.metrics"],
    },
    "keycloak": {
        "provides": ["auth.server", "sso"],
        "requires": ["database.postgres"],
        "after": ["postgres"],
        "optional": ["reverse_proxy"],
    },
    "consul": {
        "provides": ["service.discovery", "kv.store"],
    },
    "nomad": {
        "provides": ["container.orchestration"],
        "conflicts": ["kubernetes"],
        "optional": ["service.discovery"],
    },
    "jellyfin": {
        "provides": ["media.server"],
        "conflicts": ["plex", "emby"],
        "optional": ["reverse_proxy"],
    },
    "home-assistant": {
        "provides": ["home.automation"],
        "optional": ["database.postgres", "reverse_proxy"],
    },
}


def default_catalog() -> ServiceCatalog:
    """
    Returns a fresh catalog of the built-in services.
    """
    return ServiceCatalog.from_dict(DEFAULT_SERVICES)
