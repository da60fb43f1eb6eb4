"""Allocation of /30 subnets out of a larger IPv4 network."""

from __future__ import annotations

from ipaddress import IPv4Address, IPv4Network, ip_network


class IpAllocator:
    """Hands out /30 subnets carved from a network."""

    def __init__(self, network: IPv4Network | str) -> None:
        network = IPv4Network(network) if isinstance(network, str) else network
        first = int(network.network_address)
        last = int(network.broadcast_address)
        self._pool: dict[IPv4Network, bool] = {
            ip_network(f"{IPv4Address(address)}/30", strict=False): True
            for address in range(first, last + 1, 4)
        }

    def allocate_subnet(self) -> IPv4Network | None:
        """Reserve and return a free subnet, or None if none is left."""
        for subnet, free in self._pool.items():
            if free:
                self._pool[subnet] = False
                return subnet
        return None

    def free_subnet(self, subnet: IPv4Network) -> None:
        """Return a subnet to the pool; unknown subnets are ignored."""
        if subnet in self._pool:
            self._pool[subnet] = True

    def available(self) -> int:
        """Number of subnets still free."""
        return sum(self._pool.values())