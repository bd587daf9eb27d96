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
Models for the runtime configuration of an enabled service: port, data directory,
domain, database connection and SSL settings.
"""
from typing import Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class ServiceMode(str, Enum):
    """
    Deployment mode of a service.
    """
    DEV = "dev"
    PROD = "prod"


class DatabaseKind(str, Enum):
    """
    Database backends a service can be pointed at.
    """
    SQLITE3 = "sqlite3"
    MYSQL = "mysql"
    POSTGRES = "postgres"
    REDIS = "redis"


# Backends that authenticate with a password over the network.
PASSWORD_DATABASES = (DatabaseKind.MYSQL, DatabaseKind.POSTGRES)


class DatabaseConfig(BaseModel):
    """
    Database connection used by a service.
    """
    model_config = ConfigDict(frozen=True)

    kind: DatabaseKind = DatabaseKind.SQLITE3
    host: str = "localhost"
    port: Optional[int] = None
    name: str = "app"
    user: str = "app"
    password_file: Optional[str] = None
    require_ssl: bool = False


class SslConfig(BaseModel):
    """
    TLS settings. Either ``acme_host`` or both certificate paths must be set
    when enabled.
    """
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    certificate: Optional[str] = None
    certificate_key: Optional[str] = None
    acme_host: Optional[str] = None


class ServiceInstance(BaseModel):
    """
    One enabled service as configured by the user.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    port: int
    data_dir: str
    domain: Optional[str] = None
    database: Optional[DatabaseConfig] = None
    ssl: Optional[SslConfig] = None
    mode: ServiceMode = Field(default=ServiceMode.PROD)
