"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class DatabaseConfig(BaseSettings):
    """Authoritative store (SQL Server) configuration."""

    model_config = {"env_prefix": "HRDOCS_DB_"}

    url: str = ""  # Full SQLAlchemy URL; wins over the parts below
    server: str = "127.0.0.1"
    port: int = 1433
    instance: str = ""  # Named instance; the port is ignored when set
    name: str = ""
    user: str = ""
    password: str = ""
    encrypt: bool = False
    driver: str = "ODBC Driver 18 for SQL Server"
    schema_name: str | None = "hr"
    isolation_level: str = "READ COMMITTED"
    pool_size: int = 10
    payslip_procedure: str = "hr.sp_PaySlips_Add"

    def sqlalchemy_url(self) -> str | URL:
        if self.url:
            return self.url
        host = self.server.strip()
        if self.instance.strip():
            host = f"{host}\\{self.instance.strip()}"
        return URL.create(
            "mssql+pyodbc",
            username=self.user.strip() or None,
            password=self.password.strip() or None,
            host=host,
            port=None if self.instance.strip() else self.port,
            database=self.name.strip() or None,
            query={
                "driver": self.driver,
                "Encrypt": "yes" if self.encrypt else "no",
                "TrustServerCertificate": "yes",
            },
        )


class StorageConfig(BaseSettings):
    """Payslip file storage configuration."""

    model_config = {"env_prefix": "HRDOCS_STORAGE_"}

    backend: Literal["local", "s3"] = "local"
    root: str = "storage"
    bucket: str = "hrdocs-payslips"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class UploadConfig(BaseSettings):
    """Payslip upload limits and audit notes."""

    model_config = {"env_prefix": "HRDOCS_UPLOAD_"}

    max_batch_files: int = 125
    single_note: str = "Carga por API"
    batch_note: str = "Carga masiva RRHH"


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "HRDOCS_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    port: int = 4000

    database: DatabaseConfig = DatabaseConfig()
    storage: StorageConfig = StorageConfig()
    upload: UploadConfig = UploadConfig()
