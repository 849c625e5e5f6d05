"""Environment snapshot of the benchmarking host.

Collects host static data (OS, kernel, CPU, memory, disks, network) once at
process start. The snapshot is attached to the invocation on the dashboard so
results can be compared across machines.
"""

from __future__ import annotations

import json
import logging
import platform
import subprocess
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import psutil

logger = logging.getLogger(__name__)


def _run(cmd: list[str], timeout: float = 5.0) -> str:
    """Run a command safely, returning stdout or empty string on failure."""
    try:
        result = subprocess.run(
            cmd, check=False, capture_output=True, text=True, timeout=timeout
        )
    except (OSError, subprocess.SubprocessError):
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def _json_output(cmd: list[str], timeout: float = 5.0) -> Any:
    """Run a command expected to emit JSON; return parsed object or None."""
    raw = _run(cmd, timeout=timeout)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def _read_os_release(path: Path = Path("/etc/os-release")) -> dict[str, str]:
    """Parse /etc/os-release when available."""
    data: dict[str, str] = {}
    if not path.exists():
        return data
    for line in path.read_text().splitlines():
        if "=" not in line:
            continue
        key, val = line.split("=", 1)
        data[key.strip()] = val.strip().strip('"')
    return data


@dataclass(frozen=True)
class DiskInfo:
    name: str
    size_bytes: int | None = None
    rotational: bool | None = None
    model: str | None = None


@dataclass(frozen=True)
class NicInfo:
    name: str
    up: bool | None = None
    speed_mbps: int | None = None


@dataclass(frozen=True)
class Environment:
    hostname: str
    timestamp: str
    os: dict[str, Any]
    kernel: dict[str, Any]
    python: dict[str, Any]
    cpu: dict[str, Any]
    memory: dict[str, Any]
    disks: list[DiskInfo] = field(default_factory=list)
    nics: list[NicInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hostname": self.hostname,
            "timestamp": self.timestamp,
            "os": self.os,
            "kernel": self.kernel,
            "python": self.python,
            "cpu": self.cpu,
            "memory": self.memory,
            "disks": [asdict(d) for d in self.disks],
            "nics": [asdict(n) for n in self.nics],
        }


def _collect_cpu() -> dict[str, Any]:
    info: dict[str, Any] = {}

    lscpu_json = _json_output(["lscpu", "-J"])
    if isinstance(lscpu_json, dict) and "lscpu" in lscpu_json:
        for entry in lscpu_json["lscpu"]:
            if not isinstance(entry, dict):
                continue
            name = entry.get("field", "").strip(": ")
            value = entry.get("data")
            if name in ("Model name", "Vendor ID", "Architecture") and value is not None:
                info[name.lower().replace(" ", "_")] = value
    else:
        cpuinfo = Path("/proc/cpuinfo")
        if cpuinfo.exists():
            for line in cpuinfo.read_text().splitlines():
                if ":" not in line:
                    continue
                k, v = line.split(":", 1)
                key = k.strip().lower().replace(" ", "_")
                if key in ("model_name", "vendor_id"):
                    info.setdefault(key, v.strip())

    info["logical_cpus"] = psutil.cpu_count(logical=True)
    info["physical_cpus"] = psutil.cpu_count(logical=False)
    try:
        freq = psutil.cpu_freq()
    except (OSError, NotImplementedError):
        freq = None
    if freq:
        info["freq_max_mhz"] = freq.max
    return info


def _collect_memory() -> dict[str, Any]:
    vm = psutil.virtual_memory()
    swap = psutil.swap_memory()
    return {
        "total_bytes": vm.total,
        "available_bytes": vm.available,
        "swap_total_bytes": swap.total,
    }


def _collect_disks() -> list[DiskInfo]:
    disks: list[DiskInfo] = []
    lsblk = _json_output(["lsblk", "-J", "-b", "-d", "-o", "NAME,SIZE,ROTA,MODEL"])
    if not isinstance(lsblk, dict):
        return disks
    for block in lsblk.get("blockdevices", []):
        name = block.get("name")
        if not name:
            continue
        size = block.get("size")
        rota = block.get("rota")
        disks.append(
            DiskInfo(
                name=str(name),
                size_bytes=int(size) if str(size).isdigit() else None,
                rotational=bool(rota) if rota is not None else None,
                model=block.get("model"),
            )
        )
    return disks


def _collect_nics() -> list[NicInfo]:
    nics: list[NicInfo] = []
    try:
        stats = psutil.net_if_stats()
    except OSError as exc:
        logger.debug("Failed to read network interfaces: %s", exc)
        return nics
    for name, st in sorted(stats.items()):
        if name == "lo":
            continue
        nics.append(
            NicInfo(
                name=name,
                up=st.isup,
                speed_mbps=st.speed if st.speed and st.speed > 0 else None,
            )
        )
    return nics


def collect_environment() -> Environment:
    """Collect the environment snapshot into an immutable dataclass."""
    uname = platform.uname()
    os_release = _read_os_release()
    return Environment(
        hostname=uname.node or platform.node() or "",
        timestamp=datetime.now(timezone.utc).isoformat(),
        os={
            "name": os_release.get("PRETTY_NAME") or os_release.get("NAME") or uname.system,
            "id": os_release.get("ID") or "",
            "version_id": os_release.get("VERSION_ID") or "",
        },
        kernel={
            "system": uname.system,
            "release": uname.release,
            "version": uname.version,
            "machine": uname.machine,
        },
        python={
            "version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "executable": sys.executable or "",
        },
        cpu=_collect_cpu(),
        memory=_collect_memory(),
        disks=_collect_disks(),
        nics=_collect_nics(),
    )
