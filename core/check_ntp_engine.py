#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
#   Autors:
#       David Hannequin <david.hannequin@gmail.com>
#   Date : 2024-05-14

from checks.ntp import NTPOffsetCheck, failure, validate_thresholds
from checks.ntp_stats import extract_stats
from core.errors import AcquisitionError, ExtractionError
from core.ntpq import NtpqClient
from log.check_ntp_log import CheckNTPLogger


class CheckNTPEngine:
    """ check-ntp engine class."""

    def __init__(self, settings, client=None, logger=None):
        self.settings = settings
        self.client = client or NtpqClient(host=settings.host,
                                           timeout=settings.timeout,
                                           ntpq_path=settings.ntpq_path)
        self.result_logger = logger or CheckNTPLogger(
            settings.log_file_path, debug=settings.debug)

    def validate(self):
        validate_thresholds(self.settings.thresholds)

    def run(self):
        """ Run the check once.

        Raises ConfigurationError before touching ntpd when the thresholds
        are invalid. Acquisition and extraction failures become CRITICAL
        results.
        """
        self.validate()
        result = self.run_check()
        self.result_logger.log_result(result)
        return result

    def run_check(self):
        try:
            snapshot = self.client.snapshot()
        except AcquisitionError as err:
            self.result_logger.warning(f"cannot read ntpd state: {err}")
            return failure("failed to run check", err)
        self.result_logger.log_snapshot(snapshot)

        try:
            stats = extract_stats(snapshot)
            self.result_logger.log_stats(stats)
            return NTPOffsetCheck(self.settings.thresholds).evaluate(
                stats, snapshot)
        except ExtractionError as err:
            self.result_logger.warning(
                f"{err.__class__.__name__}: {err}")
            return failure("failed to extract NTP statistics", err)
