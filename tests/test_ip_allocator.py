from ipaddress import IPv4Network

from rik.ip_allocator import IpAllocator

NETWORK = IPv4Network("192.168.1.0/24")


def test_pool_covers_network_in_slash_30():
    allocator = IpAllocator(NETWORK)
    assert allocator.available() * 4 == NETWORK.num_addresses


def test_allocate_returns_subnet_inside_network():
    allocator = IpAllocator(NETWORK)
    before = allocator.available()
    subnet = allocator.allocate_subnet()
    assert subnet.prefixlen == 30
    assert subnet.subnet_of(NETWORK)
    assert allocator.available() == before - 1


def test_exhaustion_returns_none_and_subnets_are_distinct():
    allocator = IpAllocator("10.0.0.0/28")
    total = allocator.available()
    subnets = {allocator.allocate_subnet() for _ in range(total)}
    assert len(subnets) == total
    assert allocator.allocate_subnet() is None
    assert allocator.available() == 0


def test_free_subnet_makes_it_available_again():
    allocator = IpAllocator(NETWORK)
    subnet = allocator.allocate_subnet()
    before = allocator.available()
    allocator.free_subnet(subnet)
    assert allocator.available() == before + 1


def test_free_unknown_subnet_is_ignored():
    allocator = IpAllocator(NETWORK)
    before = allocator.available()
    allocator.free_subnet(IPv4Network("172.16.0.0/30"))
    assert allocator.available() == before