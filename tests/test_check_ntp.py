import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest import mock

import check_ntp
from core.errors import AcquisitionError
from ntp_samples import CANDIDATE_STATUS, SYS_PEER_STATUS, peer, snapshot


class TestMain(unittest.TestCase):

    def setUp(self):
        patcher = mock.patch('core.ntpq.NtpqClient.snapshot')
        self.snapshot = patcher.start()
        self.addCleanup(patcher.stop)
        self.snapshot.return_value = snapshot()

    def run_main(self, *argv, environ=None):
        stdout = io.StringIO()
        with redirect_stdout(stdout), mock.patch('sys.stderr',
                                                 io.StringIO()):
            code = check_ntp.main(list(argv), environ or {})
        return code, stdout.getvalue()

    def with_offset(self, offset):
        self.snapshot.return_value = snapshot(
            [peer(1, SYS_PEER_STATUS, offset=offset)])

    def test_ok(self):
        code, output = self.run_main()
        self.assertEqual(code, check_ntp.EXIT_OK)
        self.assertEqual(
            output, "check-ntp OK: offset -0.215 within thresholds | "
            "clk_jitter=0.134000, clk_wander=0.021000, frequency=-12.345000, "
            "mintc=3, offset=-0.215000, stratum=2, sys_jitter=0.188212, "
            "tc=10\n")

    def test_warning(self):
        self.with_offset('-50.0')
        code, output = self.run_main('-w', '10', '-c', '100')
        self.assertEqual(code, check_ntp.EXIT_WARNING)
        self.assertTrue(
            output.startswith(
                "check-ntp WARNING: offset -50.000 exceeds thresholds | "))

    def test_critical(self):
        self.with_offset('150.0')
        code, output = self.run_main('--warning', '10', '--critical', '100')
        self.assertEqual(code, check_ntp.EXIT_CRITICAL)
        self.assertIn("CRITICAL: offset 150.000 exceeds", output)

    def test_invalid_thresholds(self):
        code, output = self.run_main('-w', '20', '-c', '5')
        self.assertEqual(code, check_ntp.EXIT_WARNING)
        self.assertEqual(
            output, "error validating input: --warning cannot be greater "
            "than --critical\n")
        self.snapshot.assert_not_called()

    def test_zero_threshold(self):
        code, output = self.run_main('-c', '0')
        self.assertEqual(code, check_ntp.EXIT_WARNING)
        self.assertIn("--critical is required", output)

    def test_nan_thresholds_rejected(self):
        self.with_offset('5000.0')
        code, output = self.run_main('-w', 'nan', '-c', 'nan')
        self.assertEqual(code, check_ntp.EXIT_WARNING)
        self.assertIn("--critical must be a positive number", output)
        self.snapshot.assert_not_called()

    def test_negative_thresholds_rejected(self):
        self.with_offset('0.0')
        code, output = self.run_main('-w', '-5', '-c', '-1')
        self.assertEqual(code, check_ntp.EXIT_WARNING)
        self.assertIn("--warning must be a positive number", output)

    def test_nan_offset_is_critical(self):
        self.with_offset('nan')
        code, output = self.run_main()
        self.assertEqual(code, check_ntp.EXIT_CRITICAL)
        self.assertIn("failed to extract NTP statistics", output)

    def test_only_status_line_on_success(self):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), mock.patch('sys.stderr', stderr):
            code = check_ntp.main([], {})
        self.assertEqual(code, check_ntp.EXIT_OK)
        self.assertEqual(stderr.getvalue(), "")
        self.assertEqual(len(stdout.getvalue().splitlines()), 1)

    def test_acquisition_failure(self):
        self.snapshot.side_effect = AcquisitionError("ntpd is not running")
        code, output = self.run_main()
        self.assertEqual(code, check_ntp.EXIT_CRITICAL)
        self.assertEqual(
            output, "check-ntp CRITICAL: failed to run check, "
            "error: ntpd is not running\n")

    def test_no_system_peer(self):
        self.snapshot.return_value = snapshot([peer(1, CANDIDATE_STATUS)])
        code, output = self.run_main()
        self.assertEqual(code, check_ntp.EXIT_CRITICAL)
        self.assertEqual(
            output, "check-ntp CRITICAL: failed to extract NTP statistics, "
            "error: no sys peer present\n")

    def test_unexpected_error(self):
        self.snapshot.side_effect = RuntimeError("boom")
        code, output = self.run_main()
        self.assertEqual(code, check_ntp.EXIT_UNKNOWN)
        self.assertEqual(output, "check-ntp UNKNOWN: unexpected error: boom\n")

    def test_generate_config(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'check-ntp.ini')
            code, output = self.run_main('-g', '-C', path)
            self.assertEqual(code, check_ntp.EXIT_OK)
            self.assertIn("Configuration generated successfully", output)
            self.with_offset('5.0')
            code, _ = self.run_main('-C', path)
        self.assertEqual(code, check_ntp.EXIT_OK)

    def test_generate_config_needs_path(self):
        code, output = self.run_main('-g')
        self.assertEqual(code, check_ntp.EXIT_UNKNOWN)
        self.assertIn("Configuration file path is required", output)
        self.snapshot.assert_not_called()

    def test_config_file_thresholds(self):
        self.with_offset('3.0')
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'check-ntp.ini')
            with open(path, 'w', encoding="utf-8") as config_file:
                config_file.write("[Ntp]\nwarning = 1\ncritical = 2\n")
            code, _ = self.run_main('-C', path)
            self.assertEqual(code, check_ntp.EXIT_CRITICAL)
            code, _ = self.run_main('-C', path, '-c', '5')
            self.assertEqual(code, check_ntp.EXIT_WARNING)

    def test_debug_environment(self):
        stderr = io.StringIO()
        with redirect_stdout(io.StringIO()), mock.patch('sys.stderr', stderr):
            check_ntp.main([], {'NTP_DEBUG': '1'})
        self.assertIn("system variables:", stderr.getvalue())
