import ipaddress
import socket
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import psutil

from ..logging_config import get_logger


logger = get_logger("core.network")


class NetworkProbe(Protocol):
    def is_connected(self) -> bool:
        ...


@dataclass(frozen=True)
class NetworkCapabilities:
    interface: str
    has_internet: bool
    validated: bool


def _is_routable(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


def interface_has_internet(name: str) -> bool:
    addrs = psutil.net_if_addrs().get(name, [])
    return any(
        addr.family in (socket.AF_INET, socket.AF_INET6) and _is_routable(addr.address)
        for addr in addrs
    )


def find_active_interface() -> Optional[str]:
    """Return the first non-loopback interface that is up and has a routable address."""

    stats = psutil.net_if_stats()
    for name, stat in stats.items():
        if not stat.isup or name.startswith("lo"):
            continue
        if interface_has_internet(name):
            return name
    return None


class SystemNetworkProbe:
    """Connectivity check over the host's network interfaces.

    ``is_connected`` never opens a connection. It combines interface state from
    psutil with the outcome of the most recent :meth:`validate` call, which is
    the only method that touches the network.
    """

    def __init__(
        self,
        check_host: str,
        check_port: int = 443,
        *,
        timeout: float = 3.0,
        interface_finder: Callable[[], Optional[str]] = find_active_interface,
        internet_checker: Callable[[str], bool] = interface_has_internet,
    ) -> None:
        self._check_host = check_host
        self._check_port = check_port
        self._timeout = timeout
        self._interface_finder = interface_finder
        self._internet_checker = internet_checker
        self._validated = False
        self._lock = threading.Lock()

    def capabilities(self) -> Optional[NetworkCapabilities]:
        interface = self._interface_finder()
        if interface is None:
            return None
        with self._lock:
            validated = self._validated
        return NetworkCapabilities(
            interface=interface,
            has_internet=self._internet_checker(interface),
            validated=validated,
        )

    def is_connected(self) -> bool:
        caps = self.capabilities()
        if caps is None:
            return False
        return caps.has_internet and caps.validated

    def validate(self) -> bool:
        """Attempt one TCP connection to the check host and remember the outcome."""

        try:
            with socket.create_connection((self._check_host, self._check_port), timeout=self._timeout):
                ok = True
        except OSError as exc:
            logger.info("network_validation_failed", host=self._check_host, error=str(exc))
            ok = False
        with self._lock:
            self._validated = ok
        return ok


class StaticNetworkProbe:
    """Probe with a fixed answer; used when offline mode is forced."""

    def __init__(self, connected: bool) -> None:
        self.connected = connected

    def is_connected(self) -> bool:
        return self.connected
