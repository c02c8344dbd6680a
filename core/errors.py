#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
#   Authors:
#       David Hannequin <david.hannequin@gmail.com>
#   Date : 2024-05-14


class CheckNTPError(Exception):
    """ Base class for check-ntp errors."""


class ConfigurationError(CheckNTPError):
    """ Invalid thresholds, the check must not run."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class AcquisitionError(CheckNTPError):
    """ The ntpd state could not be read."""


class ExtractionError(CheckNTPError):
    """ The ntpd state was read but holds no usable statistics."""


class NoSystemPeer(ExtractionError):
    pass


class MalformedSnapshot(ExtractionError):
    pass
