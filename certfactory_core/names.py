from __future__ import annotations
import ipaddress, re
from typing import List, Optional, Tuple, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

CN_PATTERN = re.compile(r"^([A-Za-z0-9:][-A-Za-z0-9_.:]*)?[A-Za-z0-9:]$")


def is_valid_cn(cn: str) -> bool:
    return CN_PATTERN.fullmatch(cn) is not None


def parse_ip(value: str) -> Optional[IPAddress]:
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        return None


def split_cns(names: List[str]) -> Tuple[List[str], List[IPAddress]]:
    """
    Sort names and split them into DNS names and IP addresses.

    Sorting keeps certificate generation deterministic no matter in which
    order the names were gathered from one or more secrets.
    """
    domains: List[str] = []
    ips: List[IPAddress] = []
    for v in sorted(names):
        ip = parse_ip(v)
        if ip is None:
            domains.append(v)
        else:
            ips.append(ip)
    return domains, ips

