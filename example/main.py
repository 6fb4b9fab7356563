import asyncio

from ping_server import AwxPingServer
from awx_installer.models import PollConfig
from awx_installer.probes import http_ping
from awx_installer.readiness import ReadinessWaiter


async def start_later(server: AwxPingServer, port: int, delay: float):
    await asyncio.sleep(delay)
    await server.start(port=port)
    print(f"Server started on http://localhost:{port}")


async def main():
    PORT = 8000
    server = AwxPingServer()
    boot = asyncio.create_task(start_later(server, PORT, delay=5.0))

    waiter = ReadinessWaiter(PollConfig(max_attempts=10, interval=1.0))
    outcome = await waiter.wait(
        http_ping(f"http://localhost:{PORT}/api/v2/ping/"), "AWX to respond"
    )

    print(f"Outcome: {outcome.status.value} after {outcome.attempts} attempt(s)")
    print(f"Observed: {outcome.observed}")
    print(f"Total time: {outcome.elapsed_time:.6f}s")

    await boot
    await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
