import io
import unittest
from contextlib import redirect_stderr, redirect_stdout

from loadspeed import cli
from loadspeed.core import DEFAULT_USER_AGENT
from loadspeed.events import LoadFinished, LoadStarted, ResourceReceived, ResourceRequested

from fakes import FakeClock, ScriptedEngine, at


class TestCommandLine(unittest.TestCase):
    def test_missing_url_prints_usage(self):
        """Scenario: invoked without a URL."""
        stdout, stderr = io.StringIO(), io.StringIO()
        factory_calls = []

        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = cli.main([], engine_factory=lambda name: factory_calls.append(name))

        self.assertEqual(code, 0)
        self.assertIn("Usage: loadspeed URL", stderr.getvalue())
        self.assertNotIn("BEGIN-JSON", stdout.getvalue())
        self.assertEqual(factory_calls, [])

    def test_defaults(self):
        args = cli.build_parser().parse_args(["http://x/"])
        settings = cli.settings_from_args(args)

        self.assertEqual(settings.user_agent, DEFAULT_USER_AGENT)
        self.assertEqual((settings.viewport_width, settings.viewport_height), (750, 1334))
        self.assertEqual(settings.resource_timeout_ms, 30000)
        self.assertEqual(args.settle_delay, 1000)
        self.assertEqual(args.browser, "chromium")

    def test_viewport_option(self):
        args = cli.build_parser().parse_args(["http://x/", "--viewport", "1024x768"])
        self.assertEqual(args.viewport, (1024, 768))

    def test_browser_launch_failure_still_reports(self):
        """Scenario: the browser executable is missing."""
        engines = []

        def factory(browser_name):
            engine = ScriptedEngine(FakeClock(), configure_error=RuntimeError("Executable doesn't exist"))
            engines.append(engine)
            return engine

        stdout = io.StringIO()
        with redirect_stdout(stdout):
            code = cli.main(["http://x/", "--settle-delay", "0", "--log-level", "ERROR"], engine_factory=factory)

        self.assertEqual(code, 0)
        self.assertTrue(engines[0].closed)
        output = stdout.getvalue()
        self.assertIn("BEGIN-JSON", output)
        self.assertIn('"status": "exception"', output)
        self.assertIn('"errorName": "RuntimeError"', output)
        self.assertIn("END-JSON", output)

    def test_end_to_end_with_scripted_engine(self):
        clock = FakeClock()
        engines = []

        def factory(browser_name):
            engine = ScriptedEngine(clock, [
                (0, LoadStarted()),
                (0, ResourceRequested(1, "GET", "http://x/", at(0))),
                (50, ResourceReceived(1, at(50), 200)),
                (60, LoadFinished("success")),
            ])
            engines.append(engine)
            return engine

        stdout = io.StringIO()
        with redirect_stdout(stdout):
            code = cli.main(["http://x/", "--settle-delay", "10", "--log-level", "ERROR"], engine_factory=factory)

        self.assertEqual(code, 0)
        engine = engines[0]
        self.assertTrue(engine.closed)
        self.assertEqual(engine.waited_ms, 10)
        self.assertEqual(engine.navigated_to, "http://x/")
        output = stdout.getvalue()
        self.assertIn("BEGIN-JSON", output)
        self.assertIn('"status": "success"', output)
        self.assertIn("END-JSON", output)


if __name__ == "__main__":
    unittest.main()
