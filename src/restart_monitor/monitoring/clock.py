"""Wall clock and sleep provider shared by the monitoring components."""

import asyncio
import time


class Clock:
    """Real time source. Tests substitute a clock that advances on sleep."""

    def now(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
