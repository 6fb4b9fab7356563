from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from awx_installer.errors import InvalidChoiceError


class PollStatus(str, Enum):
    ready = "ready"
    timed_out = "timed_out"
    cancelled = "cancelled"


class PollConfig(BaseModel):
    max_attempts: int = Field(default=60, ge=1)
    interval: float = Field(default=5.0, ge=0)  # seconds


class PollOutcome(BaseModel):
    status: PollStatus
    attempts: int
    observed: Any = None
    elapsed_time: float = 0.0

    @classmethod
    def ready(cls, attempts: int, observed: Any = None, elapsed_time: float = 0.0):
        return cls(
            status=PollStatus.ready,
            attempts=attempts,
            observed=observed,
            elapsed_time=elapsed_time,
        )

    @classmethod
    def timed_out(cls, attempts: int, elapsed_time: float = 0.0):
        return cls(
            status=PollStatus.timed_out, attempts=attempts, elapsed_time=elapsed_time
        )

    @classmethod
    def cancelled(cls, attempts: int, elapsed_time: float = 0.0):
        return cls(
            status=PollStatus.cancelled, attempts=attempts, elapsed_time=elapsed_time
        )

    @property
    def is_ready(self) -> bool:
        return self.status == PollStatus.ready


class InstallMethod(str, Enum):
    operator = "operator"
    docker = "docker"

    @property
    def alternate(self) -> "InstallMethod":
        if self is InstallMethod.operator:
            return InstallMethod.docker
        return InstallMethod.operator

    @classmethod
    def from_choice(cls, choice: str) -> "InstallMethod":
        """Map the interactive menu key to a method"""
        choices = {"1": cls.operator, "2": cls.docker}
        try:
            return choices[choice.strip()]
        except KeyError:
            raise InvalidChoiceError(
                f"Invalid choice {choice!r}. Please run the installer again and choose 1 or 2."
            ) from None


class InstallerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    admin_user: str = "admin"
    admin_password: str = "password"
    secret_key: str = "awxsecretkey123456789012345678901234567890"
    deploy_dir: Path = Path("/opt/awx-deployment")

    cluster_name: str = "awx"
    namespace: str = "awx"
    operator_namespace: str = "awx-system"
    operator_version: str = "2.19.1"
    instance_name: str = "awx-demo"

    host: str = "localhost"
    host_port: int = 8080
    node_port: int = 30080

    compose_version: str = "v2.24.1"
    kind_version: str = "v0.20.0"

    min_memory_gb: int = 4
    min_disk_gb: int = 20

    @property
    def awx_url(self) -> str:
        return f"http://{self.host}:{self.host_port}"

    @property
    def ping_url(self) -> str:
        return f"{self.awx_url}/api/v2/ping/"

    @property
    def operator_deployment(self) -> str:
        return "awx-operator-controller-manager"

    @property
    def admin_secret_name(self) -> str:
        return f"{self.instance_name}-admin-password"

    @property
    def awx_pod_selector(self) -> str:
        return f"app.kubernetes.io/name={self.instance_name}"

    @property
    def operator_kustomize_url(self) -> str:
        return f"https://github.com/ansible/awx-operator/config/default?ref={self.operator_version}"


class CommandResult(BaseModel):
    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class AccessInfo(BaseModel):
    method: InstallMethod
    url: str
    username: str
    password: str
    directory: Optional[Path] = None
