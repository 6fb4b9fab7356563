from aiohttp import web
from loguru import logger


class AwxPingServer:
    """Stands in for AWX's /api/v2/ping/ endpoint"""

    def __init__(self, version: str = "24.6.1", status: int = 200):
        self.version = version
        self.status = status
        self.requests = 0
        self.runner = None
        self.app = web.Application()
        self.app.router.add_get("/api/v2/ping/", self.handle_ping)
        self.logger = logger

    async def handle_ping(self, request):
        self.requests += 1

        if self.status >= 500:
            self.logger.info(f"Returning HTTP {self.status}")
            return web.Response(status=self.status, text="AWX is starting")

        self.logger.info("Returning ping payload")
        return web.json_response(
            {
                "ha": False,
                "version": self.version,
                "active_node": "awx_all",
                "install_uuid": "00000000-0000-0000-0000-000000000000",
            }
        )

    async def start(self, port: int = 8080):
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, "localhost", port)
        await site.start()
        self.logger.info(f"Server started on port {port}")
        return site

    async def stop(self):
        if self.runner is not None:
            await self.runner.cleanup()
