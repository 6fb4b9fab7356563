"""Readiness predicates for the resources the installer waits on.

Every factory returns a zero-argument coroutine function suitable for
`ReadinessWaiter.wait`. Predicates only read state; a failing query raises
and the waiter counts it as "not ready yet".
"""

import base64
import json
from typing import Any, Dict, List

import aiohttp
from loguru import logger

from awx_installer.readiness import Predicate
from awx_installer.shell import CommandRunner


def _has_condition(resource: Dict[str, Any], condition: str) -> bool:
    for entry in resource.get("status", {}).get("conditions", []):
        if entry.get("type") == condition:
            return entry.get("status") == "True"
    return False


def nodes_ready(runner: CommandRunner) -> Predicate:
    async def predicate() -> bool:
        result = await runner.run("kubectl", "get", "nodes", "-o", "json")
        nodes = json.loads(result.stdout).get("items", [])
        return bool(nodes) and all(_has_condition(node, "Ready") for node in nodes)

    return predicate


def namespace_exists(runner: CommandRunner, name: str) -> Predicate:
    async def predicate() -> bool:
        result = await runner.run("kubectl", "get", "namespace", name, check=False)
        return result.ok

    return predicate


def deployment_exists(runner: CommandRunner, name: str, namespace: str) -> Predicate:
    async def predicate() -> bool:
        result = await runner.run(
            "kubectl", "get", "deployment", name, "-n", namespace, check=False
        )
        return result.ok

    return predicate


def deployment_available(runner: CommandRunner, name: str, namespace: str) -> Predicate:
    async def predicate() -> bool:
        result = await runner.run(
            "kubectl", "get", "deployment", name, "-n", namespace, "-o", "json"
        )
        return _has_condition(json.loads(result.stdout), "Available")

    return predicate


def _pod_phases(stdout: str) -> List[str]:
    pods = json.loads(stdout).get("items", [])
    return [pod.get("status", {}).get("phase", "") for pod in pods]


def pods_running(runner: CommandRunner, namespace: str, selector: str) -> Predicate:
    """Ready once some pod in the namespace runs and the selected pod is Running"""

    async def predicate():
        result = await runner.run("kubectl", "get", "pods", "-n", namespace, "-o", "json")
        phases = _pod_phases(result.stdout)
        running = phases.count("Running")
        total = len(phases)
        logger.info(f"AWX pods status: {running}/{total} running")
        if running == 0:
            return None

        selected = await runner.run(
            "kubectl", "get", "pods", "-n", namespace, "-l", selector, "-o", "json"
        )
        if "Running" not in _pod_phases(selected.stdout):
            return None
        return (running, total)

    return predicate


def secret_value(runner: CommandRunner, name: str, namespace: str, key: str) -> Predicate:
    async def predicate() -> str:
        result = await runner.run(
            "kubectl",
            "get",
            "secret",
            name,
            "-n",
            namespace,
            "-o",
            f"jsonpath={{.data.{key}}}",
        )
        encoded = result.stdout.strip()
        if not encoded:
            return ""
        return base64.b64decode(encoded).decode()

    return predicate


def http_ping(url: str, timeout: float = 10.0) -> Predicate:
    """Any HTTP response counts as up; only connection failures mean not ready"""

    async def predicate():
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.get(url) as response:
                logger.debug(f"Ping {url} answered with HTTP {response.status}")
                try:
                    return await response.json() or True
                except (aiohttp.ContentTypeError, ValueError):
                    return True

    return predicate
