import getpass
from typing import Callable, List

from loguru import logger

from awx_installer import probes
from awx_installer.dependencies import install_k8s_tools
from awx_installer.models import AccessInfo, InstallerConfig, InstallMethod, PollConfig
from awx_installer.readiness import ReadinessWaiter
from awx_installer.shell import CommandRunner
from awx_installer.templates import (
    awx_manifest,
    kind_cluster_config,
    namespace_manifest,
    to_yaml,
    write_deployment_files,
)

WaiterFactory = Callable[[PollConfig], ReadinessWaiter]

CLUSTER_READY = PollConfig(max_attempts=60, interval=5)
OPERATOR_RESOURCE = PollConfig(max_attempts=60, interval=5)
OPERATOR_AVAILABLE = PollConfig(max_attempts=120, interval=5)
AWX_PODS = PollConfig(max_attempts=60, interval=15)
ADMIN_SECRET = PollConfig(max_attempts=30, interval=10)
AWX_PING = PollConfig(max_attempts=30, interval=30)


class Strategy:
    method: InstallMethod

    def __init__(
        self,
        config: InstallerConfig,
        runner: CommandRunner,
        waiter_factory: WaiterFactory = ReadinessWaiter,
    ):
        self.config = config
        self.runner = runner
        self.waiter_factory = waiter_factory
        self.logger = logger

    async def prepare(self) -> None:
        """Install the tooling this strategy needs"""

    async def install(self) -> AccessInfo:
        raise NotImplementedError

    def next_steps(self) -> List[str]:
        raise NotImplementedError

    def cleanup_hint(self) -> str:
        raise NotImplementedError


class OperatorStrategy(Strategy):
    """Deploy AWX through the AWX Operator on a local kind cluster"""

    method = InstallMethod.operator

    async def prepare(self) -> None:
        await install_k8s_tools(self.runner, self.config)

    async def _kubectl_apply(self, document: dict) -> None:
        await self.runner.run("kubectl", "apply", "-f", "-", input=to_yaml(document))

    async def _ensure_cluster(self) -> None:
        clusters = await self.runner.run("kind", "get", "clusters")
        if self.config.cluster_name in clusters.stdout.split():
            self.logger.info(f"Kubernetes cluster {self.config.cluster_name} already exists")
            return

        self.logger.info("Creating Kubernetes cluster with kind...")
        await self.runner.run(
            "kind", "create", "cluster",
            "--name", self.config.cluster_name,
            "--config", "-",
            input=to_yaml(kind_cluster_config(self.config)),
        )

    async def _install_operator(self) -> None:
        config = self.config

        self.logger.info("Installing AWX Operator...")
        await self.runner.run("kubectl", "apply", "-k", config.operator_kustomize_url)

        await self.waiter_factory(OPERATOR_RESOURCE).require(
            probes.namespace_exists(self.runner, config.operator_namespace),
            f"{config.operator_namespace} namespace",
        )
        await self.waiter_factory(OPERATOR_RESOURCE).require(
            probes.deployment_exists(
                self.runner, config.operator_deployment, config.operator_namespace
            ),
            "AWX Operator deployment",
        )
        await self.waiter_factory(OPERATOR_AVAILABLE).require(
            probes.deployment_available(
                self.runner, config.operator_deployment, config.operator_namespace
            ),
            "AWX Operator to be available",
        )
        self.logger.success("AWX Operator is ready")

    async def _admin_password(self) -> str:
        config = self.config
        self.logger.info("Retrieving admin password...")
        outcome = await self.waiter_factory(ADMIN_SECRET).tolerate_timeout(
            probes.secret_value(
                self.runner, config.admin_secret_name, config.namespace, "password"
            ),
            "admin password secret",
        )
        if outcome.is_ready:
            return outcome.observed
        self.logger.warning(
            f"Could not retrieve admin password. Using default: {config.admin_password}"
        )
        return config.admin_password

    async def install(self) -> AccessInfo:
        config = self.config
        self.logger.info("Installing AWX using AWX Operator (Kubernetes)...")

        await self._ensure_cluster()
        await self.waiter_factory(CLUSTER_READY).require(
            probes.nodes_ready(self.runner), "cluster nodes to be ready"
        )

        self.logger.info(f"Creating {config.namespace} namespace...")
        await self._kubectl_apply(namespace_manifest(config.namespace))

        await self._install_operator()

        self.logger.info("Creating AWX instance...")
        await self._kubectl_apply(awx_manifest(config))

        self.logger.info("Waiting for AWX to be ready (this may take 10-15 minutes)...")
        pods = await self.waiter_factory(AWX_PODS).tolerate_timeout(
            probes.pods_running(self.runner, config.namespace, config.awx_pod_selector),
            "AWX pods",
        )
        if pods.is_ready:
            self.logger.info("AWX pods are running")
        else:
            self.logger.warning(
                f"AWX may still be starting. Check status with: kubectl get pods -n {config.namespace}"
            )

        password = await self._admin_password()
        self.logger.success("AWX Operator installation completed successfully!")
        return AccessInfo(
            method=self.method,
            url=config.awx_url,
            username=config.admin_user,
            password=password,
        )

    def next_steps(self) -> List[str]:
        config = self.config
        return [
            f"View pods: kubectl get pods -n {config.namespace}",
            f"View AWX logs: kubectl logs -f deployment/{config.instance_name} -n {config.namespace}",
            "View operator logs: kubectl logs -f "
            f"deployment/{config.operator_deployment} -n {config.operator_namespace}",
            f"Delete AWX: kubectl delete awx {config.instance_name} -n {config.namespace}",
            f"Delete cluster: kind delete cluster --name {config.cluster_name}",
        ]

    def cleanup_hint(self) -> str:
        return f"kind delete cluster --name {self.config.cluster_name}"


class DockerComposeStrategy(Strategy):
    """Run AWX, PostgreSQL and Redis as containers managed by docker-compose"""

    method = InstallMethod.docker

    async def _prepare_directory(self) -> None:
        directory = str(self.config.deploy_dir)
        user = getpass.getuser()
        await self.runner.sudo("mkdir", "-p", directory)
        await self.runner.sudo("chown", f"{user}:{user}", directory)

    async def install(self) -> AccessInfo:
        config = self.config
        self.logger.info("Installing AWX using Docker Compose...")

        await self._prepare_directory()
        write_deployment_files(config, config.deploy_dir)

        self.logger.info("Starting AWX services...")
        await self.runner.run("docker-compose", "up", "-d", cwd=config.deploy_dir)

        self.logger.info("Waiting for AWX to be ready...")
        await self.waiter_factory(AWX_PING).require(
            probes.http_ping(config.ping_url),
            "AWX to respond",
            hint="Check logs with: docker-compose logs awx",
        )

        self.logger.success("AWX Docker installation completed successfully!")
        return AccessInfo(
            method=self.method,
            url=config.awx_url,
            username=config.admin_user,
            password=config.admin_password,
            directory=config.deploy_dir,
        )

    def next_steps(self) -> List[str]:
        return [
            "View containers: docker-compose ps",
            "View logs: docker-compose logs -f awx",
            "Stop AWX: docker-compose down",
            "Restart AWX: docker-compose up -d",
            f"Installation directory: {self.config.deploy_dir}",
        ]

    def cleanup_hint(self) -> str:
        return f"cd {self.config.deploy_dir} && docker-compose down -v"


STRATEGIES = {
    InstallMethod.operator: OperatorStrategy,
    InstallMethod.docker: DockerComposeStrategy,
}
