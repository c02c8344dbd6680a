#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
#   Autors:
#       David Hannequin <david.hannequin@gmail.com>
#   Date : 2024-05-14

import sys
import argparse
import logging
from checks.ntp import Severity, render
from core.check_ntp_engine import CheckNTPEngine
from core.config import ConfigGenerator, ConfigLoader
from core.errors import ConfigurationError

EXIT_OK = 0
EXIT_WARNING = 1
EXIT_CRITICAL = 2
EXIT_UNKNOWN = 3

EXIT_CODES = {
    Severity.OK: EXIT_OK,
    Severity.WARNING: EXIT_WARNING,
    Severity.CRITICAL: EXIT_CRITICAL
}


def make_parser():
    parser = argparse.ArgumentParser(
        prog="check-ntp", description="Check NTP offset and provide metrics")
    parser.add_argument("-w",
                        "--warning",
                        type=float,
                        help="Warning threshold for offset in ms (default 10)")
    parser.add_argument("-c",
                        "--critical",
                        type=float,
                        help="Critical threshold for offset in ms (default 100)")
    parser.add_argument("-d",
                        "--debug",
                        action="store_true",
                        help="output debugging data (env NTP_DEBUG)")
    parser.add_argument("-H",
                        "--host",
                        help="ntpd host to query (default localhost)")
    parser.add_argument("-t",
                        "--timeout",
                        type=int,
                        help="ntpq timeout in seconds (default 5)")
    parser.add_argument("--ntpq", help="Path to the ntpq binary")
    parser.add_argument("-C",
                        "--config",
                        help="Path to the configuration file")
    parser.add_argument("-g",
                        "--generate_config",
                        action="store_true",
                        help="Generate configuration file")
    return parser


def main(argv=None, environ=None):
    args = make_parser().parse_args(argv)

    if args.generate_config:
        if not args.config:
            print("Error : Configuration file path is required to generate "
                  "configuration.")
            return EXIT_UNKNOWN
        config_gen = ConfigGenerator(args.config)
        config_gen.write_config_file(config_gen.generate_config())
        print(f"Configuration generated successfully using {args.config}")
        return EXIT_OK

    try:
        settings = ConfigLoader(args.config, environ).load(args)
        engine = CheckNTPEngine(settings)
        result = engine.run()
    except ConfigurationError as err:
        print(f"error validating input: {err}")
        return EXIT_WARNING
    except Exception as err:  # pylint: disable=broad-except
        logging.getLogger("check_ntp").exception("unexpected error")
        print(f"check-ntp UNKNOWN: unexpected error: {err}")
        return EXIT_UNKNOWN

    print(render(result))
    return EXIT_CODES[result.severity]


if __name__ == "__main__":
    sys.exit(main())
