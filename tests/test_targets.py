import ipaddress
from itertools import islice

import pytest

from netsweep.errors import TargetError
from netsweep.targets import count_targets, expand_targets, iter_targets


def test_slash_30_drops_network_and_broadcast():
    assert expand_targets("192.168.1.0/30") == ["192.168.1.1", "192.168.1.2"]


def test_slash_32_returned_unmodified():
    assert expand_targets("10.1.2.3/32") == ["10.1.2.3"]


def test_slash_31_returned_unmodified():
    assert expand_targets("10.0.0.0/31") == ["10.0.0.0", "10.0.0.1"]


def test_host_bits_are_masked():
    assert expand_targets("10.0.0.6/30") == ["10.0.0.5", "10.0.0.6"]


def test_slash_24_is_ascending_and_unique():
    hosts = expand_targets("172.20.0.0/24")
    assert len(hosts) == 254
    assert hosts[0] == "172.20.0.1"
    assert hosts[-1] == "172.20.0.254"
    values = [int(ipaddress.ip_address(h)) for h in hosts]
    assert values == sorted(set(values))


def test_ipv6_block():
    assert expand_targets("2001:db8::/126") == ["2001:db8::1", "2001:db8::2"]
    assert expand_targets("::1/128") == ["::1"]


def test_single_address_is_verbatim():
    assert expand_targets("192.168.1.10") == ["192.168.1.10"]
    assert expand_targets("not-an-ip") == ["not-an-ip"]


@pytest.mark.parametrize("target", ["10.0.0.0/33", "foo/24", "10.0.0/8x", "/"])
def test_malformed_cidr_raises(target):
    with pytest.raises(TargetError):
        expand_targets(target)


def test_oversized_block_rejected():
    with pytest.raises(TargetError):
        expand_targets("10.0.0.0/7")
    with pytest.raises(TargetError):
        expand_targets("2001:db8::/64")


def test_iter_targets_is_lazy_and_matches_expand():
    first = list(islice(iter_targets("10.0.0.0/8"), 3))
    assert first == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]
    assert count_targets("10.0.0.0/8") == (1 << 24) - 2
    assert list(iter_targets("192.168.1.0/29")) == expand_targets("192.168.1.0/29")
    assert count_targets("192.168.1.0/29") == 6
    assert count_targets("10.0.0.0/31") == 2
    assert count_targets("host.example") == 1


def test_iter_targets_validates_eagerly():
    with pytest.raises(TargetError):
        iter_targets("10.0.0.0/33")
