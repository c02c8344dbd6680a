#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
#   Autors:
#       David Hannequin <david.hannequin@gmail.com>
#   Date : 2024-05-14

import sys
import socket
import logging
import ntplib


class HostnameFilter(logging.Filter):
    """ Add the hostname to every record."""

    def __init__(self):
        super().__init__()
        self.hostname = socket.gethostname()

    def filter(self, record):
        record.hostname = self.hostname
        return True


class CheckNTPLogger:
    """ Log class for check-ntp.

    stdout carries the plugin output. stderr only shows errors, or every
    record with debug, so the status line is not repeated there. log_file,
    when configured, keeps results and failures at INFO.
    """

    def __init__(self, log_file=None, debug=False, stream=None):
        self.log_file = log_file
        self.logger = logging.getLogger('check_ntp')
        self.logger.setLevel(logging.DEBUG if debug else logging.INFO)
        self.logger.propagate = False
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        formatter = logging.Formatter(
            '%(asctime)s - %(hostname)s - %(message)s')
        stream_handler = logging.StreamHandler(stream or sys.stderr)
        stream_handler.setLevel(logging.DEBUG if debug else logging.ERROR)
        handlers = [stream_handler]
        if log_file:
            handlers.append(logging.FileHandler(log_file))
        for handler in handlers:
            handler.setFormatter(formatter)
            handler.addFilter(HostnameFilter())
            self.logger.addHandler(handler)

    def log_result(self, result):
        self.logger.info("%s: %s", result.severity.value, result.message)

    def log_snapshot(self, snapshot):
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        self.logger.debug("system variables: %s", dict(snapshot.sys_vars))
        leap = snapshot.sys_vars.get('leap')
        if leap is not None:
            self.logger.debug("leap indicator: %s", describe_leap(leap))
        for peer in snapshot.peers.values():
            self.logger.debug("peer %d status=%04x selection=%d %s",
                              peer.assid, peer.status, peer.selection,
                              dict(peer.variables))

    def log_stats(self, stats):
        self.logger.debug(
            "sys peer %s: %s, offset=%s ms, jitter=%s ms, delay=%s ms, "
            "poll=%ss, reach=%s, frequency=%s ppm", stats.peer_address,
            describe_stratum(stats.peer_stratum), stats.peer_offset,
            stats.peer_jitter, stats.peer_delay, stats.peer_poll,
            stats.peer_reach, stats.frequency)

    def warning(self, message):
        self.logger.warning(message)

    def exception(self, message):
        self.logger.exception(message)


def describe_leap(leap):
    """ ntpq prints the leap indicator as two bits, e.g. 00."""
    try:
        return ntplib.leap_to_text(int(leap, 2))
    except (ValueError, ntplib.NTPException):
        return f"unknown ({leap})"


def describe_stratum(stratum):
    try:
        return ntplib.stratum_to_text(stratum)
    except ntplib.NTPException:
        return f"invalid stratum ({stratum})"
