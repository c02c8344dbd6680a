#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
#   Authors:
#       David Hannequin <david.hannequin@gmail.com>
#   Date : 2024-05-14

import os
import configparser
from collections import namedtuple
from core.errors import ConfigurationError

DEFAULT_WARNING = 10.0
DEFAULT_CRITICAL = 100.0
DEFAULT_HOST = 'localhost'
DEFAULT_TIMEOUT = 5
DEFAULT_NTPQ_PATH = 'ntpq'

DEBUG_ENV = 'NTP_DEBUG'

ThresholdConfig = namedtuple('ThresholdConfig', ['warning', 'critical'])

Settings = namedtuple('Settings', [
    'thresholds', 'debug', 'host', 'timeout', 'ntpq_path', 'log_file_path'
])


def parse_bool(value, source):
    state = configparser.ConfigParser.BOOLEAN_STATES.get(
        str(value).strip().lower())
    if state is None:
        raise ConfigurationError([f"invalid boolean for {source}: {value!r}"])
    return state


class ConfigLoader:
    """ Merge defaults, config file, environment and command line.

    Later sources win: command line > environment > config file > defaults.
    Unset command line options are expected to be None.
    """

    def __init__(self, config_file=None, environ=None):
        self.config_file = config_file
        self.environ = os.environ if environ is None else environ
        self.config = configparser.ConfigParser()
        if config_file:
            if not self.config.read(config_file):
                raise ConfigurationError(
                    [f"cannot read configuration file {config_file}"])

    def _from_file(self, option, getter, fallback):
        try:
            return getter('Ntp', option, fallback=fallback)
        except ValueError as err:
            raise ConfigurationError(
                [f"invalid value for Ntp.{option} in {self.config_file}: {err}"
                 ]) from err

    def load(self, args):
        warning = self._from_file('warning', self.config.getfloat,
                                  DEFAULT_WARNING)
        critical = self._from_file('critical', self.config.getfloat,
                                   DEFAULT_CRITICAL)
        debug = self._from_file('debug', self.config.getboolean, False)
        host = self.config.get('Ntp', 'host', fallback=DEFAULT_HOST)
        timeout = self._from_file('timeout', self.config.getint,
                                  DEFAULT_TIMEOUT)
        ntpq_path = self.config.get('Ntp',
                                    'ntpq_path',
                                    fallback=DEFAULT_NTPQ_PATH)
        log_file_path = self.config.get('Setting',
                                        'log_file_path',
                                        fallback=None)

        if self.environ.get(DEBUG_ENV):
            debug = parse_bool(self.environ[DEBUG_ENV], DEBUG_ENV)

        if args.warning is not None:
            warning = args.warning
        if args.critical is not None:
            critical = args.critical
        if args.debug:
            debug = True
        if args.host is not None:
            host = args.host
        if args.timeout is not None:
            timeout = args.timeout
        if args.ntpq is not None:
            ntpq_path = args.ntpq

        return Settings(thresholds=ThresholdConfig(warning, critical),
                        debug=debug,
                        host=host,
                        timeout=timeout,
                        ntpq_path=ntpq_path,
                        log_file_path=log_file_path or None)


class ConfigGenerator:
    """ Generate configuration file."""

    def __init__(self, filename):
        self.filename = filename
        self.settings = {
            'log_file_path': '',
        }
        self.ntp = {
            'warning': DEFAULT_WARNING,
            'critical': DEFAULT_CRITICAL,
            'debug': False,
            'host': DEFAULT_HOST,
            'timeout': DEFAULT_TIMEOUT,
            'ntpq_path': DEFAULT_NTPQ_PATH
        }

    def generate_config(self):
        sections = {'Setting': self.settings, 'Ntp': self.ntp}

        config = ''
        for section, values in sections.items():
            config += f"[{section}]\n"
            for key, value in values.items():
                config += f"{key} = {value}\n"
            config += "\n"
        return config

    def write_config_file(self, config):
        with open(self.filename, 'w', encoding="utf-8") as file:
            file.write(config)
