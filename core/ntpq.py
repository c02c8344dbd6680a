#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
#   Authors:
#       David Hannequin <david.hannequin@gmail.com>
#   Date : 2024-05-14

import re
import logging
import subprocess
from collections import OrderedDict, namedtuple
import psutil
from core.errors import AcquisitionError

LOCAL_HOSTS = ('localhost', '127.0.0.1', '::1')
DAEMON_NAMES = ('ntpd', )

# Peer selection codes, bits 8-10 of the peer status word.
SEL_REJECT = 0
SEL_FALSETICK = 1
SEL_EXCESS = 2
SEL_OUTLIER = 3
SEL_CANDIDATE = 4
SEL_BACKUP = 5
SEL_SYS_PEER = 6
SEL_PPS_PEER = 7
SYNC_SELECTIONS = (SEL_SYS_PEER, SEL_PPS_PEER)

VARIABLE_RE = re.compile(r'(?<![\w.])([A-Za-z_]\w*)='
                         r'("[^"]*"|[^\s,]*'
                         r'(?:[ \t]+(?![A-Za-z_]\w*=)[^\s,=]+)*)')

RawSnapshot = namedtuple('RawSnapshot', ['sys_vars', 'peers'])
PeerRecord = namedtuple('PeerRecord',
                        ['assid', 'status', 'selection', 'variables'])

logger = logging.getLogger('check_ntp.ntpq')


def parse_variables(output):
    """ Parse the name=value list printed by ``ntpq -c rv``.

    Values are kept as strings, quotes removed. Fragments without a name,
    such as the decoded status flags, are ignored.
    """
    variables = OrderedDict()
    for match in VARIABLE_RE.finditer(output):
        name, value = match.group(1), match.group(2).strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        variables[name] = value
    return variables


def parse_associations(output):
    """ Parse ``ntpq -c associations`` into {assid: status word}."""
    associations = OrderedDict()
    in_table = False
    for line in output.splitlines():
        if line.startswith('='):
            in_table = True
            continue
        if not in_table or not line.strip():
            continue
        fields = line.split()
        try:
            associations[int(fields[1])] = int(fields[2], 16)
        except (IndexError, ValueError) as err:
            raise AcquisitionError(
                f"unexpected association line: {line.strip()!r}") from err
    return associations


def selection_from_status(status):
    return (status >> 8) & 0x7


class NtpqClient:
    """ Read ntpd system and peer variables through ntpq."""

    def __init__(self, host='localhost', timeout=5, ntpq_path='ntpq'):
        self.host = host
        self.timeout = timeout
        self.ntpq_path = ntpq_path

    def is_daemon_running(self):
        for proc in psutil.process_iter(['name']):
            if proc.info['name'] in DAEMON_NAMES:
                return True
        return False

    def query(self, command):
        cmd = [self.ntpq_path, '-n', '-c', command, self.host]
        logger.debug("running %s", ' '.join(cmd))
        try:
            proc = subprocess.run(cmd,
                                  capture_output=True,
                                  text=True,
                                  timeout=self.timeout,
                                  check=True)
        except FileNotFoundError as err:
            raise AcquisitionError(
                f"{self.ntpq_path} not found, is ntp installed?") from err
        except subprocess.TimeoutExpired as err:
            raise AcquisitionError(
                f"ntpq timed out after {self.timeout}s") from err
        except subprocess.CalledProcessError as err:
            raise AcquisitionError(
                f"ntpq exited with status {err.returncode}: "
                f"{(err.stderr or '').strip()}") from err
        except OSError as err:
            raise AcquisitionError(f"cannot run ntpq: {err}") from err
        return proc.stdout, proc.stderr

    def read_variables(self, assid):
        stdout, stderr = self.query(f"rv {assid}")
        variables = parse_variables(stdout)
        if not variables:
            detail = stderr.strip() or stdout.strip() or "no output"
            raise AcquisitionError(
                f"no variables returned for association {assid}: {detail}")
        return variables

    def read_sys_vars(self):
        return self.read_variables(0)

    def read_associations(self):
        stdout, stderr = self.query('associations')
        associations = parse_associations(stdout)
        if not associations and stderr.strip():
            raise AcquisitionError(
                f"cannot list associations: {stderr.strip()}")
        return associations

    def read_peer_vars(self, assid):
        return self.read_variables(assid)

    def snapshot(self):
        if self.host in LOCAL_HOSTS and not self.is_daemon_running():
            raise AcquisitionError("ntpd is not running")

        sys_vars = self.read_sys_vars()
        peers = OrderedDict()
        for assid, status in self.read_associations().items():
            selection = selection_from_status(status)
            try:
                variables = self.read_peer_vars(assid)
            except AcquisitionError as err:
                # only the peer ntpd follows is needed
                if selection in SYNC_SELECTIONS:
                    raise
                logger.warning("skipping peer %d: %s", assid, err)
                continue
            peers[assid] = PeerRecord(assid=assid,
                                      status=status,
                                      selection=selection,
                                      variables=variables)
        logger.debug("read %d system variables and %d peers", len(sys_vars),
                     len(peers))
        return RawSnapshot(sys_vars=sys_vars, peers=peers)
