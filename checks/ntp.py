#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
#   Autor(s):
#       David Hannequin <david.hannequin@gmail.com>
#   Date : 2024-05-14

import enum
import math
from collections import namedtuple
from checks.ntp_stats import read_float, read_int
from core.errors import ConfigurationError

CHECK_NAME = "check-ntp"

CheckResult = namedtuple('CheckResult', ['severity', 'message', 'perfdata'])


class Severity(enum.Enum):
    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


def validate_thresholds(thresholds):
    """ Check every threshold rule and report all violations at once."""
    errors = []
    if thresholds.critical == 0:
        errors.append("--critical is required")
    elif not _positive(thresholds.critical):
        errors.append("--critical must be a positive number")
    if thresholds.warning == 0:
        errors.append("--warning is required")
    elif not _positive(thresholds.warning):
        errors.append("--warning must be a positive number")
    if thresholds.warning > thresholds.critical:
        errors.append("--warning cannot be greater than --critical")
    if errors:
        raise ConfigurationError(errors)


def _positive(value):
    return math.isfinite(value) and value > 0


def format_perfdata(stats, sys_vars):
    where = 'system variables'
    return (f"clk_jitter={stats.peer_jitter:f}, "
            f"clk_wander={read_float(sys_vars, 'clk_wander', where):f}, "
            f"frequency={stats.frequency:f}, "
            f"mintc={read_int(sys_vars, 'mintc', where):d}, "
            f"offset={stats.peer_offset:f}, "
            f"stratum={stats.peer_stratum:d}, "
            f"sys_jitter={read_float(sys_vars, 'sys_jitter', where):f}, "
            f"tc={read_int(sys_vars, 'tc', where):d}")


class NTPOffsetCheck:
    """ Class to check the offset of the NTP system peer."""

    def __init__(self, thresholds):
        self.warning_threshold = thresholds.warning
        self.critical_threshold = thresholds.critical

    def classify(self, offset):
        if abs(offset) > self.critical_threshold:
            return Severity.CRITICAL
        if abs(offset) > self.warning_threshold:
            return Severity.WARNING
        return Severity.OK

    def evaluate(self, stats, snapshot):
        severity = self.classify(stats.peer_offset)
        relation = "within" if severity is Severity.OK else "exceeds"
        message = (f"{CHECK_NAME} {severity.value}: "
                   f"offset {stats.peer_offset:.3f} {relation} thresholds")
        return CheckResult(severity=severity,
                           message=message,
                           perfdata=format_perfdata(stats,
                                                    snapshot.sys_vars))


def failure(reason, error):
    """ CRITICAL result for a check that could not produce statistics."""
    message = f"{CHECK_NAME} CRITICAL: {reason}, error: {error}"
    return CheckResult(severity=Severity.CRITICAL,
                       message=message,
                       perfdata=None)


def render(result):
    if result.perfdata:
        return f"{result.message} | {result.perfdata}"
    return result.message
