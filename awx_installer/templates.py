from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from awx_installer.models import InstallerConfig

DATABASE_NAME = "awx"
DATABASE_USER = "awx"
DATABASE_PASSWORD = "awxpass"

SETTINGS_TEMPLATE = """\
# AWX Settings
import os
SECRET_KEY = os.environ.get('SECRET_KEY', {secret_key})
DATABASES = {{
    'default': {{
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DATABASE_NAME', '{db_name}'),
        'USER': os.environ.get('DATABASE_USER', '{db_user}'),
        'PASSWORD': os.environ.get('DATABASE_PASSWORD', '{db_password}'),
        'HOST': os.environ.get('DATABASE_HOST', 'postgres'),
        'PORT': os.environ.get('DATABASE_PORT', '5432'),
    }}
}}
BROKER_URL = 'redis://{{}}:{{}}/0'.format(
    os.environ.get('REDIS_HOST', 'redis'),
    os.environ.get('REDIS_PORT', '6379')
)
STATIC_ROOT = '/var/lib/awx/public/static'
PROJECTS_ROOT = '/var/lib/awx/projects'
"""


def to_yaml(document: Dict[str, Any]) -> str:
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)


def kind_cluster_config(config: InstallerConfig) -> Dict[str, Any]:
    return {
        "kind": "Cluster",
        "apiVersion": "kind.x-k8s.io/v1alpha4",
        "nodes": [
            {
                "role": "control-plane",
                "extraPortMappings": [
                    {
                        "containerPort": config.node_port,
                        "hostPort": config.host_port,
                        "protocol": "TCP",
                    }
                ],
            }
        ],
    }


def namespace_manifest(name: str) -> Dict[str, Any]:
    return {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": name}}


def awx_manifest(config: InstallerConfig) -> Dict[str, Any]:
    return {
        "apiVersion": "awx.ansible.com/v1beta1",
        "kind": "AWX",
        "metadata": {"name": config.instance_name, "namespace": config.namespace},
        "spec": {
            "service_type": "NodePort",
            "nodeport_port": config.node_port,
            "admin_user": config.admin_user,
            "postgres_storage_class": "standard",
            "postgres_storage_requirements": {"requests": {"storage": "8Gi"}},
        },
    }


# Credentials reach the shell only through the container environment
CREATE_ADMIN = (
    "import os; "
    "from django.contrib.auth.models import User; "
    "user = os.environ['AWX_ADMIN_USER']; "
    "User.objects.filter(username=user).exists() or "
    "User.objects.create_superuser(user, 'admin@example.com', os.environ['AWX_ADMIN_PASSWORD'])"
)


def compose_value(value: str) -> str:
    """Escape `$` so docker-compose does not interpolate it"""
    return value.replace("$", "$$")


def _awx_startup_command() -> str:
    steps = [
        "echo 'Waiting for database...'",
        "sleep 30",
        "echo 'Running migrations...'",
        "awx-manage migrate --noinput",
        "echo 'Creating admin user...'",
        f'echo "{CREATE_ADMIN}" | awx-manage shell',
        "echo 'Starting AWX services...'",
        "supervisord -c /etc/supervisord.conf",
    ]
    return " && ".join(steps)


def compose_descriptor(config: InstallerConfig) -> Dict[str, Any]:
    return {
        "services": {
            "postgres": {
                "image": "postgres:13",
                "container_name": "awx_postgres",
                "restart": "unless-stopped",
                "environment": {
                    "POSTGRES_DB": DATABASE_NAME,
                    "POSTGRES_USER": DATABASE_USER,
                    "POSTGRES_PASSWORD": DATABASE_PASSWORD,
                    "PGDATA": "/var/lib/postgresql/data/pgdata/",
                },
                "volumes": ["postgres_data:/var/lib/postgresql/data/pgdata/"],
                "healthcheck": {
                    "test": [
                        "CMD-SHELL",
                        f"pg_isready -U {DATABASE_USER} -d {DATABASE_NAME}",
                    ],
                    "interval": "10s",
                    "timeout": "5s",
                    "retries": 10,
                },
            },
            "redis": {
                "image": "redis:7-alpine",
                "container_name": "awx_redis",
                "restart": "unless-stopped",
            },
            "awx": {
                "image": "ghcr.io/ansible/awx_devel:devel",
                "container_name": "awx_all",
                "restart": "unless-stopped",
                "ports": [f"{config.host_port}:8080", "8043:8043"],
                "environment": {
                    "SECRET_KEY": compose_value(config.secret_key),
                    "AWX_ADMIN_USER": compose_value(config.admin_user),
                    "AWX_ADMIN_PASSWORD": compose_value(config.admin_password),
                    "DATABASE_NAME": DATABASE_NAME,
                    "DATABASE_USER": DATABASE_USER,
                    "DATABASE_PASSWORD": DATABASE_PASSWORD,
                    "DATABASE_HOST": "postgres",
                    "DATABASE_PORT": 5432,
                    "REDIS_HOST": "redis",
                    "REDIS_PORT": 6379,
                },
                "depends_on": {"postgres": {"condition": "service_healthy"}},
                "volumes": [
                    "awx_projects:/var/lib/awx/projects",
                    "./settings.py:/etc/awx/settings.py:ro",
                ],
                "command": ["bash", "-c", _awx_startup_command()],
            },
        },
        "volumes": {"postgres_data": None, "awx_projects": None},
    }


def awx_settings(config: InstallerConfig) -> str:
    return SETTINGS_TEMPLATE.format(
        secret_key=repr(config.secret_key),
        db_name=DATABASE_NAME,
        db_user=DATABASE_USER,
        db_password=DATABASE_PASSWORD,
    )


def write_deployment_files(config: InstallerConfig, directory: Path) -> Tuple[Path, Path]:
    """Render docker-compose.yml and settings.py into `directory`"""
    compose_path = directory / "docker-compose.yml"
    settings_path = directory / "settings.py"
    compose_path.write_text(to_yaml(compose_descriptor(config)))
    settings_path.write_text(awx_settings(config))
    return compose_path, settings_path
