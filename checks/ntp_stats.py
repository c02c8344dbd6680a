#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
#   Authors:
#       David Hannequin <david.hannequin@gmail.com>
#   Date : 2024-05-14

import math
from collections import namedtuple
from core.errors import MalformedSnapshot, NoSystemPeer
from core.ntpq import SYNC_SELECTIONS

NTPStats = namedtuple('NTPStats', [
    'peer_offset', 'peer_jitter', 'frequency', 'peer_stratum', 'peer_delay',
    'peer_poll', 'peer_reach', 'peer_address'
])


def find_sys_peer(peers):
    """ Return the peer ntpd is synchronized to, or None."""
    for peer in peers.values():
        if peer.selection in SYNC_SELECTIONS:
            return peer
    return None


def read_float(variables, name, where):
    return _read(variables, name, where, float)


def read_int(variables, name, where):
    return _read(variables, name, where, int)


def _read(variables, name, where, convert):
    if name not in variables:
        raise MalformedSnapshot(f"{name} missing from {where}")
    try:
        value = convert(variables[name])
    except (TypeError, ValueError) as err:
        raise MalformedSnapshot(
            f"{name}={variables[name]!r} in {where} is not a number") from err
    if not math.isfinite(value):
        raise MalformedSnapshot(
            f"{name}={variables[name]!r} in {where} is not a finite number")
    return value


def extract_stats(snapshot):
    """ Build NTPStats from the system peer of a snapshot.

    Offset, jitter and delay are already in milliseconds and are copied as
    is. Frequency belongs to the local clock so it comes from the system
    variables. Raises NoSystemPeer or MalformedSnapshot.
    """
    if not snapshot.peers:
        raise NoSystemPeer("no peers present")
    peer = find_sys_peer(snapshot.peers)
    if peer is None:
        raise NoSystemPeer("no sys peer present")

    where = f"peer {peer.assid}"
    variables = peer.variables
    delay = variables.get('delay')
    hpoll = variables.get('hpoll', '')
    reach = variables.get('reach', '')
    return NTPStats(
        peer_offset=read_float(variables, 'offset', where),
        peer_jitter=read_float(variables, 'jitter', where),
        frequency=read_float(snapshot.sys_vars, 'frequency',
                             'system variables'),
        peer_stratum=read_int(variables, 'stratum', where),
        peer_delay=float(delay) if _is_number(delay) else None,
        peer_poll=2**int(hpoll) if hpoll.isdigit() else None,
        peer_reach=int(reach, 8) if _is_octal(reach) else None,
        peer_address=variables.get('srcadr', str(peer.assid)))


def _is_number(value):
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def _is_octal(value):
    return bool(value) and all(char in '01234567' for char in value)
