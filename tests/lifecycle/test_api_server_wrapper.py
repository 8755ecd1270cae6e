import asyncio
import socket

import pytest
import pytest_asyncio
from fastapi import FastAPI

from lifecycle.api_server_wrapper import APIServerWrapper
from lifecycle.port_manager import PortManager


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest_asyncio.fixture
async def api_wrapper():
    app = FastAPI()
    return APIServerWrapper(app, host="127.0.0.1", port=free_port())


@pytest.mark.asyncio
async def test_start_and_stop(api_wrapper):
    task = asyncio.create_task(api_wrapper.start())
    await asyncio.sleep(0.2)  # give server time to start

    assert api_wrapper.server is not None
    assert api_wrapper.is_running

    await api_wrapper.stop()
    await asyncio.wait_for(task, timeout=2.0)

    assert not api_wrapper.is_running


@pytest.mark.asyncio
async def test_stop_without_start(api_wrapper):
    # Should not crash
    await api_wrapper.stop()


@pytest.mark.asyncio
async def test_stop_releases_port(api_wrapper):
    task = asyncio.create_task(api_wrapper.start())
    await asyncio.sleep(0.2)

    assert PortManager.instance().is_port_in_use(api_wrapper.port, "127.0.0.1")

    await api_wrapper.stop()
    await asyncio.wait_for(task, timeout=2.0)

    # port must be free now
    s = socket.socket()
    s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    s.bind(("127.0.0.1", api_wrapper.port))
    s.close()


@pytest.mark.asyncio
async def test_start_cancelled_externally(api_wrapper):
    task = asyncio.create_task(api_wrapper.start())
    await asyncio.sleep(0.05)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert not api_wrapper.is_running
    await api_wrapper.stop()


@pytest.mark.asyncio
async def test_double_start_rejected(api_wrapper):
    task = asyncio.create_task(api_wrapper.start())
    await asyncio.sleep(0.2)

    with pytest.raises(RuntimeError):
        await api_wrapper.start()

    await api_wrapper.stop()
    await asyncio.wait_for(task, timeout=2.0)
