"""
Access to the systemd manager over the D-Bus system bus via busctl.

Uses the busctl command-line client as an asyncio subprocess, so no
D-Bus bindings are required. Property values are returned exactly as
busctl renders them ("<type> <value>"); decoding is left to the caller.
"""

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from ..logging import get_logger


logger = get_logger("bus")

SYSTEMD_SERVICE = "org.freedesktop.systemd1"
MANAGER_PATH = "/org/freedesktop/systemd1"
MANAGER_INTERFACE = "org.freedesktop.systemd1.Manager"
UNIT_INTERFACE = "org.freedesktop.systemd1.Unit"
UNIT_PATH_PREFIX = "/org/freedesktop/systemd1/unit/"

# (exit_code, stdout, stderr)
BusctlResult = tuple[int, str, str]
BusctlRunner = Callable[..., Awaitable[BusctlResult]]


class BusError(Exception):
    """Exception for failed bus calls."""

    def __init__(self, message: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(message)


async def run_busctl(*args: str) -> BusctlResult:
    """
    Run busctl against the system bus.

    Returns:
        Tuple of (exit_code, stdout, stderr)

    Raises:
        BusError: If busctl cannot be executed
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            "busctl",
            "--system",
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise BusError(f"Cannot execute busctl: {e}") from e

    stdout, stderr = await proc.communicate()
    return (
        proc.returncode or 0,
        stdout.decode(errors="replace").strip(),
        stderr.decode(errors="replace").strip(),
    )


def unit_object_path(unit: str) -> str:
    """
    Build the D-Bus object path of a unit.

    Every byte that is not an ASCII letter (or a digit past the first
    position) is escaped as _XX, e.g. "foo.service" becomes
    "/org/freedesktop/systemd1/unit/foo_2eservice".
    """
    if not unit:
        return UNIT_PATH_PREFIX + "_"

    label = []
    for index, byte in enumerate(unit.encode()):
        char = chr(byte)
        if ("a" <= char <= "z") or ("A" <= char <= "Z") or (index > 0 and "0" <= char <= "9"):
            label.append(char)
        else:
            label.append(f"_{byte:02x}")
    return UNIT_PATH_PREFIX + "".join(label)


class SystemdBus:
    """
    Connection to the systemd manager.

    Obtain one through open_system_bus(); calls fail with BusError once
    the connection is closed.
    """

    def __init__(self, runner: BusctlRunner = run_busctl):
        self._runner = runner
        self._open = False
        self.version: str | None = None

    @property
    def is_open(self) -> bool:
        return self._open

    async def connect(self) -> None:
        """Check that the manager answers and remember its version."""
        self._open = True
        try:
            self.version = await self.get_manager_property("Version")
        except BusError:
            self._open = False
            raise
        logger.debug(f"Connected to systemd ({self.version})")

    def close(self) -> None:
        self._open = False

    async def _call(self, *args: str) -> str:
        if not self._open:
            raise BusError("Bus connection is closed")

        code, stdout, stderr = await self._runner(*args)
        if code != 0:
            raise BusError(f"busctl {' '.join(args)}: {stderr or stdout or 'failed'}", code)
        return stdout

    async def get_manager_property(self, name: str) -> str:
        """Read a property of the manager object, e.g. "t 1234"."""
        return await self._call(
            "get-property", SYSTEMD_SERVICE, MANAGER_PATH, MANAGER_INTERFACE, name
        )

    async def get_unit_property(self, unit: str, name: str) -> str:
        """Read a property of a unit object, e.g. "t 1234"."""
        return await self._call(
            "get-property", SYSTEMD_SERVICE, unit_object_path(unit), UNIT_INTERFACE, name
        )

    async def list_units_by_patterns(
        self,
        patterns: Sequence[str],
        states: Sequence[str] = (),
    ) -> list[str]:
        """
        List names of loaded units matching any of the glob patterns.

        Args:
            patterns: Unit name globs (empty matches all units)
            states: Unit states to filter on (empty matches all states)

        Returns:
            Unit names in manager order
        """
        output = await self._call(
            "--json=short",
            "call",
            SYSTEMD_SERVICE,
            MANAGER_PATH,
            MANAGER_INTERFACE,
            "ListUnitsByPatterns",
            "asas",
            str(len(states)),
            *states,
            str(len(patterns)),
            *patterns,
        )

        # {"type": "a(ssssssouso)", "data": [[[name, description, ...], ...]]}
        try:
            units = json.loads(output)["data"][0]
            return [str(unit[0]) for unit in units]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise BusError(f"Unexpected ListUnitsByPatterns reply: {e}") from e


BusFactory = Callable[[], AbstractAsyncContextManager[SystemdBus]]


@asynccontextmanager
async def open_system_bus(runner: BusctlRunner = run_busctl) -> AsyncIterator[SystemdBus]:
    """
    Open a connection to the systemd manager, closed on exit.

    Raises:
        BusError: If the manager cannot be reached
    """
    bus = SystemdBus(runner)
    await bus.connect()
    try:
        yield bus
    finally:
        bus.close()
