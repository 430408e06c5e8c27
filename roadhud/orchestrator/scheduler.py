import asyncio


class AutoScanScheduler:
    """Calls on_tick every interval_s seconds while running.

    `sleep` is injectable so tests can advance time by hand.
    """

    def __init__(self, on_tick, interval_s: float = 4.0, sleep=asyncio.sleep):
        self._on_tick = on_tick
        self.interval_s = interval_s
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self):
        """Cancel the pending tick. No tick fires after this returns."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self):
        me = asyncio.current_task()
        while True:
            await self._sleep(self.interval_s)
            if self._task is not me:
                return
            self.ticks += 1
            self._on_tick()
