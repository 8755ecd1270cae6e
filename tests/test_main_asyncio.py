"""
Entry point: exit status on configuration/setup errors and on a clean
signal-driven shutdown.
"""

import asyncio
import os
import signal
import socket
import textwrap

import pytest

from main_asyncio import main, parse_args


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def write_config(tmp_path, port, extra=""):
    path = tmp_path / "device-catalog.yaml"
    path.write_text(textwrap.dedent(f"""
        description: Test Device Catalog
        public_addr: 127.0.0.1
        bind_addr: 127.0.0.1
        bind_port: {port}
        api_location: /dc
        static_dir: {tmp_path / "static"}
        shutdown_grace_period: 1.0
    """) + extra, encoding="utf-8")
    return path


def test_parse_args_defaults():
    args = parse_args([])

    assert args.conf == "conf/device-catalog.yaml"
    assert args.log_level == "INFO"


@pytest.mark.asyncio
async def test_missing_config_exits_non_zero(tmp_path):
    code = await main(["--conf", str(tmp_path / "absent.yaml"), "--log-level", "ERROR"])

    assert code == 1


@pytest.mark.asyncio
async def test_invalid_config_exits_non_zero(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("description: x\npublic_addr: host\nservice_catalog:\n  - ttl: 0\n", encoding="utf-8")

    code = await main(["--conf", str(path), "--log-level", "ERROR"])

    assert code == 1


@pytest.mark.asyncio
async def test_port_in_use_exits_non_zero(tmp_path):
    with socket.socket() as holder:
        holder.bind(("127.0.0.1", 0))
        holder.listen()
        port = holder.getsockname()[1]

        code = await main(["--conf", str(write_config(tmp_path, port)), "--log-level", "ERROR"])

    assert code == 1


@pytest.mark.asyncio
async def test_sigterm_with_zero_catalogs_exits_cleanly(tmp_path):
    path = write_config(tmp_path, free_port())
    loop = asyncio.get_running_loop()
    loop.call_later(0.5, os.kill, os.getpid(), signal.SIGTERM)

    started = loop.time()
    code = await asyncio.wait_for(main(["--conf", str(path), "--log-level", "ERROR"]), timeout=5.0)

    assert code == 0
    assert loop.time() - started < 3.0


class SlowAnnouncer:
    """Stands in for DiscoveryAnnouncer; publishing takes a full second"""

    instances = []

    def __init__(self, description, port, api_location, bind_addr="0.0.0.0"):
        self.handle = None
        self.revoked = 0
        SlowAnnouncer.instances.append(self)

    async def start(self):
        await asyncio.sleep(1.0)
        self.handle = object()
        return self.handle

    async def revoke(self, timeout=None):
        self.revoked += 1
        return True

    def status(self):
        return {"enabled": True, "service_type": None, "name": None, "active": self.handle is not None, "last_error": None}


@pytest.mark.asyncio
async def test_sigterm_during_announcement_still_revokes(tmp_path, monkeypatch):
    import main_asyncio

    SlowAnnouncer.instances.clear()
    monkeypatch.setattr(main_asyncio, "DiscoveryAnnouncer", SlowAnnouncer)
    path = write_config(tmp_path, free_port(), extra="dnssd_enabled: true\n")
    loop = asyncio.get_running_loop()
    loop.call_later(0.2, os.kill, os.getpid(), signal.SIGTERM)

    code = await asyncio.wait_for(main(["--conf", str(path), "--log-level", "ERROR"]), timeout=5.0)

    assert code == 0
    (announcer,) = SlowAnnouncer.instances
    assert announcer.revoked == 1
